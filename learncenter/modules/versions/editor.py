"""
Version Editor
==============

One edit session of a website version: the scalar site copy, the three
slot domains, phone/social selections and the header image. Built once
from the API records, mutated by the editor's JSON endpoints, and turned
back into a multipart payload on submit.
"""

from typing import Dict, Iterable, List, Optional, Tuple

from .slots import (
    TEACHER, STUDENT, MEDIA,
    TEACHER_SLOTS, STUDENT_SLOTS, GALLERY_SLOTS,
    DragSession, EntityRef, MediaGallery, MediaItem, SlotCollection, SlottedEntity,
)

# Site copy sent back on submit, in the order the API documents them
SCALAR_FIELDS = (
    'header_h1_uz', 'header_h1_en',
    'about_p1_uz', 'about_p1_en',
    'about_p2_uz', 'about_p2_en',
    'total_students', 'best_students', 'total_teachers',
    'gallery_p_uz', 'gallery_p_en',
    'teachers_p_uz', 'teachers_p_en',
    'students_p_uz', 'students_p_en',
    'address_uz', 'address_en',
    'orientation_uz', 'orientation_en',
    'work_time', 'work_time_sunday',
    'email',
)

NUMBER_FIELDS = ('total_students', 'best_students', 'total_teachers')

BLANK_VERSION = {
    'id': 0,
    'header_img': '',
    'is_active': False,
    'main_phone': {'id': 0, 'phone': ''},
}


# ===== Record -> entity conversion =====

def teacher_from_record(record) -> SlottedEntity:
    name = f"{record.get('name', '')} {record.get('surname') or ''}".strip()
    return SlottedEntity(
        ref=EntityRef(TEACHER, int(record['id'])),
        display_name=name,
        subtitle=record.get('role') or '',
        image_url=record.get('image'),
    )


def student_from_record(record) -> SlottedEntity:
    name = f"{record.get('name', '')} {record.get('surname') or ''}".strip()
    return SlottedEntity(
        ref=EntityRef(STUDENT, int(record['id'])),
        display_name=name,
        subtitle=record.get('course') or record.get('cefr') or '',
        image_url=record.get('image'),
    )


def media_from_record(record, dup=None) -> MediaItem:
    return MediaItem(
        ref=EntityRef(MEDIA, int(record['id']), dup),
        kind='video' if record.get('is_video') else 'image',
        source_url=record.get('url') or '',
    )


def _slot_index(link, size) -> int:
    """0-based slot for a linkage record, -1 when its order is out of range"""
    try:
        index = int(link.get('order') or 0) - 1
    except (TypeError, ValueError):
        return -1
    return index if 0 <= index < size else -1


def build_people_slots(domain, size, reference, links, nested_key, convert) -> SlotCollection:
    """
    Slots pre-populated from the version's linkage records; the pool is the
    reference set minus whatever got placed.
    """
    slots = [None] * size
    placed = set()
    for link in links or []:
        record = (link or {}).get(nested_key)
        if not record:
            continue
        index = _slot_index(link, size)
        if index == -1 or slots[index] is not None:
            continue
        entity = convert(record)
        if entity.ref in placed:
            continue
        slots[index] = entity
        placed.add(entity.ref)

    pool = [entity for entity in reference if entity.ref not in placed]
    return SlotCollection(domain, size, pool=pool, slots=slots)


def build_gallery(library: List[MediaItem], links, size=GALLERY_SLOTS) -> MediaGallery:
    """
    Gallery slots from web_media records. The nested media object wins over a
    bare media_id lookup. A media row linked more than once comes back as
    duplicates so every slot holds a distinct ref.
    """
    by_number = {item.ref.number: item for item in library}
    slots = [None] * size
    placed = set()
    seen = {}

    for link in links or []:
        if not link:
            continue
        index = _slot_index(link, size)
        if index == -1 or slots[index] is not None:
            continue

        nested = link.get('media')
        if nested and nested.get('id') is not None:
            item = media_from_record(nested)
        elif link.get('media_id') is not None:
            item = by_number.get(int(link['media_id']))
        else:
            item = None
        if item is None:
            continue

        number = item.ref.number
        seen[number] = seen.get(number, 0) + 1
        if seen[number] > 1:
            item = MediaItem(EntityRef(MEDIA, number, seen[number] - 1), item.kind, item.source_url)
        slots[index] = item
        placed.add(item.ref)

    remaining = [item for item in library if item.ref not in placed]
    return MediaGallery(slots=slots, library=remaining, size=size)


# ===== Editor =====

class VersionEditor:
    """Everything one browser tab is editing for a website version"""

    def __init__(self, version, teachers: SlotCollection, students: SlotCollection,
                 gallery: MediaGallery, phones=None, socials=None):
        version = version or BLANK_VERSION
        self.version_id = int(version.get('id') or 0)
        self.is_active = bool(version.get('is_active'))
        self.fields = {key: version.get(key) for key in SCALAR_FIELDS}
        self.header_img_url = version.get('header_img') or ''
        self.header_img_file = None

        self.teachers = teachers
        self.students = students
        self.gallery = gallery
        self.drag = DragSession({TEACHER: teachers, STUDENT: students, MEDIA: gallery})

        self.phones = list(phones or [])
        self.socials = list(socials or [])

        main_phone = version.get('main_phone') or {}
        self.main_phone_id = main_phone.get('id') or None
        self.selected_phone_ids = {p['phone_id'] for p in version.get('web_phones') or [] if p}
        if self.main_phone_id:
            self.selected_phone_ids.add(self.main_phone_id)
        self.selected_social_ids = {s['social_id'] for s in version.get('web_socials') or [] if s}

    @property
    def is_new(self) -> bool:
        return self.version_id == 0

    # ----- scalar copy -----

    def update_fields(self, data: Dict) -> List[str]:
        """Apply edited copy fields. Unknown keys are ignored; bad numbers raise ValueError"""
        updated = []
        for key, value in (data or {}).items():
            if key not in SCALAR_FIELDS:
                continue
            if key in NUMBER_FIELDS and value not in (None, ''):
                try:
                    value = int(value)
                except (TypeError, ValueError):
                    raise ValueError(f"{key} must be a whole number")
            self.fields[key] = value
            updated.append(key)
        return updated

    def set_header_image(self, filename: str, content: bytes, mimetype: str) -> None:
        self.header_img_file = (filename, content, mimetype)

    # ----- phones and socials -----

    def toggle_phone(self, phone_id: int) -> bool:
        """Select/deselect a phone. Deselecting the main phone also unsets it"""
        if phone_id in self.selected_phone_ids:
            self.selected_phone_ids.discard(phone_id)
            if self.main_phone_id == phone_id:
                self.main_phone_id = None
            return False
        self.selected_phone_ids.add(phone_id)
        return True

    def set_main_phone(self, phone_id: int) -> bool:
        """Only a selected phone can become the main one"""
        if phone_id not in self.selected_phone_ids:
            return False
        self.main_phone_id = phone_id
        return True

    def toggle_social(self, social_id: int) -> bool:
        if social_id in self.selected_social_ids:
            self.selected_social_ids.discard(social_id)
            return False
        self.selected_social_ids.add(social_id)
        return True

    # ----- submission -----

    def linkage(self) -> Dict[str, List[Dict]]:
        return {
            'web_media': self.gallery.serialize(),
            'web_phones': [{'phone_id': pid} for pid in sorted(self.selected_phone_ids)],
            'web_socials': [{'social_id': sid} for sid in sorted(self.selected_social_ids)],
            'web_students': self.students.serialize('student_id'),
            'web_teachers': self.teachers.serialize('teacher_id'),
        }

    def to_form(self) -> Tuple[List[Tuple[str, str]], Dict]:
        """
        multipart payload: scalar fields (None/empty omitted), main_phone_id,
        then nested arrays as field[index][key]=value
        """
        pairs = []
        scalars = dict(self.fields)
        scalars['main_phone_id'] = self.main_phone_id
        for key, value in scalars.items():
            if value is None or value == '':
                continue
            pairs.append((key, str(value)))

        for field, records in self.linkage().items():
            pairs.extend(encode_nested(field, records))

        files = {}
        if self.header_img_file:
            files['header_img'] = self.header_img_file
        return pairs, files

    def to_dict(self):
        return {
            'id': self.version_id,
            'is_new': self.is_new,
            'is_active': self.is_active,
            'fields': self.fields,
            'header_img': self.header_img_url,
            'teachers': self.teachers.to_dict(),
            'students': self.students.to_dict(),
            'media': self.gallery.to_dict(),
            'phones': self.phones,
            'selected_phone_ids': sorted(self.selected_phone_ids),
            'main_phone_id': self.main_phone_id,
            'socials': self.socials,
            'selected_social_ids': sorted(self.selected_social_ids),
            'drag': self.drag.to_dict(),
        }


def encode_nested(field: str, records: Iterable[Dict]) -> List[Tuple[str, str]]:
    """[{'order': 1, 'teacher_id': 4}] -> [('field[0][order]', '1'), ('field[0][teacher_id]', '4')]"""
    pairs = []
    for index, record in enumerate(records):
        for key, value in record.items():
            if value is not None:
                pairs.append((f"{field}[{index}][{key}]", str(value)))
    return pairs


def build_editor(version, teachers=None, students=None, media=None,
                 phones=None, socials=None,
                 teacher_slots=TEACHER_SLOTS, student_slots=STUDENT_SLOTS,
                 gallery_slots=GALLERY_SLOTS) -> VersionEditor:
    """
    Assemble an editor from API records. A list that failed to load is passed
    as None; its domain starts empty and contributes nothing on submit.
    """
    version = version or dict(BLANK_VERSION)

    teacher_collection = build_people_slots(
        TEACHER, teacher_slots,
        [teacher_from_record(r) for r in teachers or []],
        version.get('web_teachers') if teachers is not None else None,
        'teacher', teacher_from_record,
    )
    student_collection = build_people_slots(
        STUDENT, student_slots,
        [student_from_record(r) for r in students or []],
        version.get('web_students') if students is not None else None,
        'student', student_from_record,
    )
    gallery = build_gallery(
        [media_from_record(r) for r in media or []],
        version.get('web_media') if media is not None else None,
        gallery_slots,
    )

    social_list = []
    for s in socials or []:
        icon = s.get('icon')
        social_list.append({
            'id': s.get('id'),
            'name': s.get('name'),
            'url': s.get('url'),
            'icon': (icon.get('url') if isinstance(icon, dict) else None) or s.get('icon_url'),
        })

    editor = VersionEditor(
        version, teacher_collection, student_collection, gallery,
        phones=[{'id': p.get('id'), 'phone': p.get('phone')} for p in phones or []],
        socials=social_list,
    )

    # Selections can only be made from lists that actually loaded
    if phones is None:
        editor.selected_phone_ids.clear()
        editor.main_phone_id = None
    if socials is None:
        editor.selected_social_ids.clear()
    return editor
