"""
Version Editor Service
======================

API round trips around an edit session: loading reference data,
uploading media into the library, and submitting the version.
"""

import logging
from concurrent.futures import ThreadPoolExecutor

from learncenter.core.api_client import ApiResponse, handle_api_error
from learncenter.core.logging_service import LoggingService
from .editor import BLANK_VERSION, build_editor, media_from_record

logger = logging.getLogger(__name__)

REFERENCE_RESOURCES = {
    'teachers': 'teacher',
    'students': 'student',
    'phones': 'phone',
    'media': 'media',
    'socials': 'social',
}

SAVE_FAILED = "Failed to save changes"


def _fetch_list(api, resource):
    # requests.Session is not thread-safe; each worker gets its own
    client = api.fork()
    try:
        return getattr(client, resource).get_all()
    finally:
        client.session.close()


def fetch_reference_data(api):
    """
    Request every reference list at once and wait for all of them.

    Returns:
        dict of list name -> ApiResponse
    """
    with ThreadPoolExecutor(max_workers=len(REFERENCE_RESOURCES)) as pool:
        futures = {
            name: pool.submit(_fetch_list, api, resource)
            for name, resource in REFERENCE_RESOURCES.items()
        }
        return {name: future.result() for name, future in futures.items()}


def load_editor(api, version_id=None, **slot_sizes):
    """
    Build a VersionEditor for version_id (None or 0 for a new version).

    Returns:
        (editor, errors) - editor is None when the version itself could not
        be loaded; errors lists messages for lists that failed and were
        replaced with empty ones
    """
    errors = []
    responses = fetch_reference_data(api)

    if version_id:
        version_res = api.web.get_by_id(version_id)
        if version_res.error:
            LoggingService.warning('versions', f"Could not load version {version_id}", version_res.error)
            return None, [handle_api_error(version_res)]
        version = version_res.data or {}
    else:
        version = dict(BLANK_VERSION)

    lists = {}
    for name in REFERENCE_RESOURCES:
        res = responses[name]
        if res.error:
            errors.append(handle_api_error(res))
            lists[name] = None
        else:
            lists[name] = res.data if isinstance(res.data, list) else []

    editor = build_editor(version, **lists, **slot_sizes)
    return editor, errors


def _is_video(file_storage) -> bool:
    return (file_storage.mimetype or '').startswith('video')


def upload_media(editor, api, files):
    """
    Upload files one by one in the order given. A failed file is reported
    and skipped; the rest of the batch still goes.

    Returns:
        (uploaded MediaItems, error messages)
    """
    uploaded = []
    errors = []
    for file_storage in files:
        res = api.media.create(
            {'is_video': 1 if _is_video(file_storage) else 0, 'name': file_storage.filename},
            {'file': (file_storage.filename, file_storage.stream, file_storage.mimetype)},
        )
        if res.error:
            logger.info(f"Upload of {file_storage.filename} failed: {res.error}")
            errors.append(handle_api_error(res))
            continue

        if not isinstance(res.data, dict) or res.data.get('id') is None:
            errors.append(f"{file_storage.filename}: upload returned no media record")
            continue

        item = media_from_record(res.data)
        editor.gallery.add(item)
        uploaded.append(item)

    return uploaded, errors


def upload_summary(count: int) -> str:
    return f"{count} file{'s' if count > 1 else ''} uploaded"


def submit_editor(editor, api) -> ApiResponse:
    """
    Send the whole arrangement in one request. On failure the editor is left
    untouched so the same arrangement can be resubmitted.
    """
    pairs, files = editor.to_form()
    logger.debug(f"Web version payload: {pairs}")

    if editor.is_new:
        res = api.web.create(pairs, files)
    else:
        res = api.web.update(editor.version_id, pairs, files)

    if res.error:
        if not res.error.strip():
            res.error = SAVE_FAILED
        LoggingService.warning('versions', f"Saving version {editor.version_id} failed", res.error)
        return res

    if editor.is_new and isinstance(res.data, dict) and res.data.get('id'):
        editor.version_id = int(res.data['id'])
    LoggingService.log_user_action('versions', f"saved version {editor.version_id}")
    return res
