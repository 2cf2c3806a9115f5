"""
Manifest Resolver
Parses manifest.json, resolves __MSG_ locale strings and embeds the icon
"""

import json

from .errors import EntryReadError, ManifestNotFound, ManifestParseError
from .models import ExtensionManifest

MANIFEST_PATH = 'manifest.json'
FALLBACK_LOCALES = ['en', 'en_US', 'en_GB']
ICON_SIZE_PREFERENCE = ['48', '128', '16']


def is_locale_key(value):
    return isinstance(value, str) and value.startswith('__MSG_') and value.endswith('__') and len(value) > 8


def _load_json(text):
    # Chrome tolerates a UTF-8 BOM in manifest and locale files
    return json.loads(text.lstrip('\ufeff'))


def _string_list(value):
    """Keep string entries only; optional object-style permissions are ignored"""
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str)]


class ManifestResolver:
    """Builds an ExtensionManifest from an ExtensionArchive"""

    def resolve(self, archive):
        """
        Read and parse manifest.json

        Args:
            archive (ExtensionArchive): Unpacked extension

        Returns:
            ExtensionManifest: Parsed manifest with localized name and icon

        Raises:
            ManifestNotFound: No manifest.json in the archive
            ManifestParseError: manifest.json is not a JSON object
            EntryReadError: manifest.json could not be read
        """
        if not archive.has_entry(MANIFEST_PATH):
            raise ManifestNotFound("manifest.json not found in extension")

        content = archive.read_text(MANIFEST_PATH)
        try:
            manifest = _load_json(content)
        except ValueError as e:
            raise ManifestParseError(f"manifest.json is not valid JSON: {e}") from e
        if not isinstance(manifest, dict):
            raise ManifestParseError("manifest.json must contain a JSON object")

        default_locale = manifest.get('default_locale')
        if not isinstance(default_locale, str):
            default_locale = None

        name = manifest.get('name')
        if not isinstance(name, str) or not name:
            name = 'Unknown'
        if is_locale_key(name):
            name = self.resolve_localized_string(archive, name, default_locale)

        description = manifest.get('description')
        if not isinstance(description, str):
            description = ''
        if is_locale_key(description):
            description = self.resolve_localized_string(archive, description, default_locale)

        version = manifest.get('version')
        if not isinstance(version, str) or not version:
            version = '0.0.0'

        manifest_version = manifest.get('manifest_version')
        if manifest_version not in (2, 3):
            manifest_version = 2

        icons = manifest.get('icons')
        if isinstance(icons, dict):
            icons = {str(size): path for size, path in icons.items() if isinstance(path, str)}
        else:
            icons = {}

        return ExtensionManifest(
            name=name,
            version=version,
            manifest_version=manifest_version,
            description=description,
            permissions=_string_list(manifest.get('permissions')),
            host_permissions=_string_list(manifest.get('host_permissions')),
            icons=icons,
            default_locale=default_locale,
            icon=self.extract_icon(archive, icons),
        )

    def resolve_localized_string(self, archive, value, default_locale=None):
        """
        Resolve a __MSG_key__ string from _locales/<locale>/messages.json

        Args:
            archive (ExtensionArchive): Unpacked extension
            value (str): The raw __MSG_key__ string
            default_locale (str): manifest default_locale, if declared

        Returns:
            str: Localized message, or value unchanged if no locale defines it
        """
        msg_key = value[6:-2]

        tried = set()
        for locale in [default_locale or 'en'] + FALLBACK_LOCALES:
            path = f'_locales/{locale}/messages.json'
            if path in tried:
                continue
            tried.add(path)
            message = self._lookup_message(archive, path, msg_key)
            if message is not None:
                return message

        # Last resort: any locale that defines the key
        for path in archive.list_entries():
            if path in tried or not path.startswith('_locales/') or not path.endswith('/messages.json'):
                continue
            message = self._lookup_message(archive, path, msg_key)
            if message is not None:
                return message

        return value

    @staticmethod
    def _lookup_message(archive, path, msg_key):
        if not archive.has_entry(path):
            return None
        try:
            messages = _load_json(archive.read_text(path))
        except (EntryReadError, ValueError):
            return None
        if not isinstance(messages, dict):
            return None

        entry = messages.get(msg_key)
        if entry is None:
            # Message names are case-insensitive in Chrome
            lowered = msg_key.lower()
            for key, candidate in messages.items():
                if isinstance(key, str) and key.lower() == lowered:
                    entry = candidate
                    break

        if isinstance(entry, dict) and isinstance(entry.get('message'), str) and entry['message']:
            return entry['message']
        return None

    def extract_icon(self, archive, icons):
        """Embed the preferred icon as a data URI; None when no usable icon exists"""
        for size in ICON_SIZE_PREFERENCE:
            icon_path = icons.get(size)
            if not icon_path or not archive.has_entry(icon_path):
                continue
            try:
                icon_data = archive.read_base64(icon_path)
            except EntryReadError:
                continue
            mime_type = 'image/png' if icon_path.lower().endswith('.png') else 'image/jpeg'
            return f"data:{mime_type};base64,{icon_data}"
        return None
