"""
Slot Composition Engine
=======================

In-memory model behind the website-version editor. Three independent
domains (teachers, students, media) each keep a fixed-size row of
featured slots next to a pool of everything not currently featured:

- teachers: 6 featured slots + available pool
- students: 6 featured slots + available pool
- media:    15 gallery slots + media library (every third slot is "big")

An entity lives in exactly one place inside its domain, either one slot
or the pool. Media is the exception: duplicates share the backend id of
their original so one asset can fill several gallery positions.

Identifiers are tagged refs (EntityRef / EmptySlot / PoolRef). The string
ids the browser uses ("teacher-3", "student-slot-1", "media-library") are
parsed once at the HTTP boundary with parse_ref and rendered back with
format_ref.
"""

import re
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Union

TEACHER = 'teacher'
STUDENT = 'student'
MEDIA = 'media'
DOMAINS = (STUDENT, TEACHER, MEDIA)

FEATURED = 'featured'
AVAILABLE = 'available'

TEACHER_SLOTS = 6
STUDENT_SLOTS = 6
GALLERY_SLOTS = 15

DUP_MARKER = '-dup-'

BIG_SIZE = '1x2'
NORMAL_SIZE = '1x1'

# Library tiles are always rendered at this size while dragged
LIBRARY_TILE_SIZE = (200, 200)


# ===== Identifiers =====

@dataclass(frozen=True)
class EntityRef:
    """A teacher, student or media item. `dup` marks a client-side media copy"""
    domain: str
    number: int
    dup: Optional[int] = None

    @property
    def is_duplicate(self) -> bool:
        return self.dup is not None


@dataclass(frozen=True)
class EmptySlot:
    """A slot position addressed directly, whether or not it is occupied"""
    domain: str
    index: int


@dataclass(frozen=True)
class PoolRef:
    """The pool container of a domain (available teachers/students, media library)"""
    domain: str


Ref = Union[EntityRef, EmptySlot, PoolRef]

_ENTITY_RE = re.compile(r'^(teacher|student|media)-(\d+)(?:-dup-(\d+))?$')
_SLOT_RE = re.compile(r'^(?:(student|media)-)?slot-(\d+)$')

_SLOT_PREFIX = {TEACHER: 'slot', STUDENT: 'student-slot', MEDIA: 'media-slot'}
_POOL_IDS = {TEACHER: 'available', STUDENT: 'availableStudents', MEDIA: 'media-library'}
_POOL_BY_ID = {value: key for key, value in _POOL_IDS.items()}


def parse_ref(raw) -> Optional[Ref]:
    """Parse a browser-side id. Unknown ids give None (an unresolved target)"""
    if raw is None:
        return None
    raw = str(raw)

    if raw in _POOL_BY_ID:
        return PoolRef(_POOL_BY_ID[raw])

    match = _ENTITY_RE.match(raw)
    if match:
        domain, number, dup = match.groups()
        if dup is not None and domain != MEDIA:
            return None
        return EntityRef(domain, int(number), int(dup) if dup is not None else None)

    match = _SLOT_RE.match(raw)
    if match:
        return EmptySlot(match.group(1) or TEACHER, int(match.group(2)))

    return None


def format_ref(ref: Ref) -> str:
    if isinstance(ref, EntityRef):
        base = f"{ref.domain}-{ref.number}"
        return f"{base}{DUP_MARKER}{ref.dup}" if ref.is_duplicate else base
    if isinstance(ref, EmptySlot):
        return f"{_SLOT_PREFIX[ref.domain]}-{ref.index}"
    if isinstance(ref, PoolRef):
        return _POOL_IDS[ref.domain]
    raise TypeError(f"Not a slot ref: {ref!r}")


# ===== Entities =====

@dataclass(frozen=True)
class SlottedEntity:
    """Teacher or student card. `subtitle` is the role or the course"""
    ref: EntityRef
    display_name: str
    subtitle: str = ''
    image_url: Optional[str] = None

    def to_dict(self):
        return {
            'id': format_ref(self.ref),
            'name': self.display_name,
            'subtitle': self.subtitle,
            'image': self.image_url,
        }


@dataclass(frozen=True)
class MediaItem:
    ref: EntityRef
    kind: str
    source_url: str

    @property
    def is_duplicate(self) -> bool:
        return self.ref.is_duplicate

    def to_dict(self):
        return {
            'id': format_ref(self.ref),
            'type': self.kind,
            'src': self.source_url,
            'duplicate': self.is_duplicate,
        }


# ===== Reconciler =====

class SlotCollection:
    """
    Fixed-size featured slots plus an unordered pool for one domain.

    Drag transitions (move):
        featured[i] -> featured[j]   swap, j may be empty or occupied
        pool        -> featured[j]   only when featured[j] is empty
        featured[i] -> pool          slot cleared, entity appended to pool
        anything    -> unresolved    no-op
    """

    def __init__(self, domain: str, size: int, pool=None, slots=None):
        self.domain = domain
        if slots is None:
            slots = [None] * size
        if len(slots) != size:
            raise ValueError(f"{domain} slots must have length {size}, got {len(slots)}")
        self.slots = list(slots)
        self.pool = list(pool or [])

    @property
    def size(self) -> int:
        return len(self.slots)

    def find(self, ref):
        """Entity with this ref, wherever it is held"""
        if not isinstance(ref, EntityRef) or ref.domain != self.domain:
            return None
        for item in self.slots:
            if item is not None and item.ref == ref:
                return item
        for item in self.pool:
            if item.ref == ref:
                return item
        return None

    def slot_index_of(self, ref) -> int:
        """Slot addressed by ref, -1 when ref is not a slot of this domain"""
        if isinstance(ref, EmptySlot):
            if ref.domain == self.domain and 0 <= ref.index < self.size:
                return ref.index
            return -1
        if isinstance(ref, EntityRef) and ref.domain == self.domain:
            for index, item in enumerate(self.slots):
                if item is not None and item.ref == ref:
                    return index
        return -1

    def container_of(self, ref) -> Optional[str]:
        if ref is None or getattr(ref, 'domain', None) != self.domain:
            return None
        if isinstance(ref, PoolRef):
            return AVAILABLE
        if self.slot_index_of(ref) != -1:
            return FEATURED
        if isinstance(ref, EntityRef) and any(item.ref == ref for item in self.pool):
            return AVAILABLE
        return None

    def move(self, active, over) -> bool:
        """Apply one drag-end. Returns True when the arrangement changed"""
        if not isinstance(active, EntityRef) or over is None:
            return False

        source = self.container_of(active)
        target = self.container_of(over)

        if source == FEATURED and target == FEATURED:
            from_index = self.slot_index_of(active)
            to_index = self.slot_index_of(over)
            if from_index == to_index:
                return False
            self.slots[from_index], self.slots[to_index] = self.slots[to_index], self.slots[from_index]
            return True

        if source == AVAILABLE and target == FEATURED:
            to_index = self.slot_index_of(over)
            # Never overwrite an occupied slot
            if self.slots[to_index] is not None:
                return False
            item = self._take_from_pool(active)
            self.slots[to_index] = item
            return True

        if source == FEATURED and target == AVAILABLE:
            from_index = self.slot_index_of(active)
            item = self.slots[from_index]
            self.slots[from_index] = None
            self.pool.append(item)
            return True

        return False

    def _take_from_pool(self, ref):
        for position, item in enumerate(self.pool):
            if item.ref == ref:
                return self.pool.pop(position)
        raise KeyError(ref)

    def discard(self, ref) -> bool:
        """Drop an entity from slots and pool alike"""
        found = False
        for index, item in enumerate(self.slots):
            if item is not None and item.ref == ref:
                self.slots[index] = None
                found = True
        remaining = [item for item in self.pool if item.ref != ref]
        found = found or len(remaining) != len(self.pool)
        self.pool = remaining
        return found

    def refs(self) -> List[EntityRef]:
        """Every ref held, slots first then pool"""
        return [item.ref for item in self.slots if item is not None] + [item.ref for item in self.pool]

    def serialize(self, id_key: str) -> List[Dict[str, int]]:
        """Linkage records for non-empty slots, 1-based order"""
        return [
            {'order': index + 1, id_key: item.ref.number}
            for index, item in enumerate(self.slots)
            if item is not None
        ]

    def to_dict(self):
        return {
            'slots': [item.to_dict() if item is not None else None for item in self.slots],
            'pool': [item.to_dict() for item in self.pool],
        }


def _now_ms() -> int:
    return int(time.time() * 1000)


class MediaGallery:
    """
    Gallery slots + media library. Same transitions as SlotCollection,
    plus duplicate/remove and uploads landing in the library.
    """

    domain = MEDIA

    def __init__(self, slots=None, library=None, size: int = GALLERY_SLOTS,
                 clock: Optional[Callable[[], int]] = None):
        self.collection = SlotCollection(MEDIA, size, pool=library, slots=slots)
        self._clock = clock or _now_ms

    @property
    def slots(self):
        return self.collection.slots

    @property
    def library(self):
        return self.collection.pool

    @property
    def size(self) -> int:
        return self.collection.size

    def find(self, ref):
        return self.collection.find(ref)

    def container_of(self, ref):
        return self.collection.container_of(ref)

    def move(self, active, over) -> bool:
        return self.collection.move(active, over)

    def add(self, item: MediaItem) -> None:
        """A freshly uploaded item goes to the end of the library"""
        self.library.append(item)

    def duplicate(self, ref) -> Optional[MediaItem]:
        """Copy an item into the library under a fresh duplicate id"""
        item = self.find(ref)
        if item is None:
            return None

        taken = {held.dup for held in self.collection.refs() if held.number == ref.number}
        stamp = self._clock()
        while stamp in taken:
            stamp += 1

        copy = MediaItem(EntityRef(MEDIA, ref.number, stamp), item.kind, item.source_url)
        self.library.append(copy)
        return copy

    def remove(self, ref, confirm: Optional[Callable[[MediaItem], bool]] = None) -> bool:
        """
        Remove an item from slot and library.

        Duplicates go immediately. Originals are only removed when confirm(item)
        returns True; without a confirm callback nothing happens.
        """
        item = self.find(ref)
        if item is None:
            return False
        if not item.is_duplicate and (confirm is None or not confirm(item)):
            return False
        return self.collection.discard(ref)

    @staticmethod
    def is_big(index: int) -> bool:
        return (index + 1) % 3 == 0

    @classmethod
    def slot_size(cls, index: int) -> str:
        return BIG_SIZE if cls.is_big(index) else NORMAL_SIZE

    def serialize(self) -> List[Dict]:
        """Gallery records; duplicates resolve to the original's media_id"""
        return [
            {'order': index + 1, 'size': self.slot_size(index), 'media_id': item.ref.number}
            for index, item in enumerate(self.slots)
            if item is not None
        ]

    def to_dict(self):
        return {
            'slots': [item.to_dict() if item is not None else None for item in self.slots],
            'big': [self.is_big(index) for index in range(self.size)],
            'library': [item.to_dict() for item in self.library],
        }


# ===== Drag session =====

@dataclass(frozen=True)
class ActiveDrag:
    domain: str
    ref: EntityRef
    width: Optional[float] = None
    height: Optional[float] = None


class DragSession:
    """
    Idle -> Dragging(active) -> Idle

    The active drag is recorded once at start and cleared once at end or
    cancel. Only the active domain's reconciler sees the drop.
    """

    def __init__(self, domains: Dict[str, Union[SlotCollection, MediaGallery]]):
        self.domains = domains
        self.active: Optional[ActiveDrag] = None

    @property
    def state(self) -> str:
        return 'dragging' if self.active is not None else 'idle'

    def start(self, ref, width=None, height=None) -> Optional[ActiveDrag]:
        """Begin dragging ref. Unknown refs leave the session idle"""
        self.active = None
        if not isinstance(ref, EntityRef):
            return None
        reconciler = self.domains.get(ref.domain)
        if reconciler is None or reconciler.find(ref) is None:
            return None

        if ref.domain == MEDIA and reconciler.container_of(ref) == AVAILABLE:
            width, height = LIBRARY_TILE_SIZE

        self.active = ActiveDrag(ref.domain, ref, width, height)
        return self.active

    def end(self, over) -> bool:
        """Drop onto over (None when released outside any target)"""
        active, self.active = self.active, None
        if active is None or over is None:
            return False
        return self.domains[active.domain].move(active.ref, over)

    def cancel(self) -> None:
        self.active = None

    def to_dict(self):
        if self.active is None:
            return {'state': 'idle', 'active': None}
        return {
            'state': 'dragging',
            'active': {
                'domain': self.active.domain,
                'id': format_ref(self.active.ref),
                'width': self.active.width,
                'height': self.active.height,
            },
        }
