"""
Chrome Extension Unpacker
Strips the CRX header and exposes the embedded ZIP archive in memory
"""

import base64
import io
import struct
import zipfile
import zlib
from pathlib import PurePosixPath

from .errors import EntryReadError, InvalidArchive

# "Cr24" read as a little-endian uint32
CRX_MAGIC = 0x34327243


def _read_uint32(data, offset):
    return struct.unpack_from('<I', data, offset)[0]


def strip_crx_header(data):
    """
    Remove the CRX header (if any) and return the ZIP payload

    CRX2 format:
    - Magic number: "Cr24"
    - Version: 2
    - Public key length, signature length
    - Public key, signature
    - ZIP archive

    CRX3 format:
    - Magic number: "Cr24"
    - Version: 3
    - Header length
    - Header data (protobuf, not validated)
    - ZIP archive

    Args:
        data (bytes): Raw package bytes

    Returns:
        bytes: ZIP payload, or the input unchanged when it is not a usable CRX
    """
    data = bytes(data)
    if len(data) < 8 or _read_uint32(data, 0) != CRX_MAGIC:
        return data

    version = _read_uint32(data, 4)
    offset = 0
    if version == 2 and len(data) >= 16:
        pubkey_len = _read_uint32(data, 8)
        sig_len = _read_uint32(data, 12)
        offset = 16 + pubkey_len + sig_len
    elif version == 3 and len(data) >= 12:
        header_size = _read_uint32(data, 8)
        offset = 12 + header_size

    if 0 < offset < len(data):
        return data[offset:]
    return data


def crx_version(data):
    """Return the CRX container version, or None for a bare archive"""
    if len(data) < 8 or _read_uint32(data, 0) != CRX_MAGIC:
        return None
    return _read_uint32(data, 4)


class ExtensionArchive:
    """Read-only view over the files of an unpacked extension"""

    def __init__(self, zip_data):
        try:
            self._zip = zipfile.ZipFile(io.BytesIO(zip_data), 'r')
        except (zipfile.BadZipFile, zipfile.LargeZipFile, ValueError) as e:
            raise InvalidArchive(f"Not a valid extension archive: {e}") from e
        self._entries = [info.filename for info in self._zip.infolist() if not info.is_dir()]
        self._entry_set = set(self._entries)

    def close(self):
        self._zip.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def list_entries(self):
        """All file paths in archive order (directories excluded)"""
        return list(self._entries)

    def has_entry(self, path):
        return self._normalize(path) in self._entry_set

    def read_bytes(self, path):
        path = self._normalize(path)
        if path not in self._entry_set:
            raise EntryReadError(path, "no such entry")
        try:
            return self._zip.read(path)
        except (zipfile.BadZipFile, zlib.error, RuntimeError, NotImplementedError, OSError, EOFError) as e:
            # Corrupt data, encrypted entries and unsupported compression all land here
            raise EntryReadError(path, e) from e

    def read_text(self, path, errors='strict'):
        """
        Read an entry as UTF-8 text

        Args:
            path (str): Entry path inside the archive
            errors (str): Codec error handler; 'strict' raises EntryReadError

        Returns:
            str: Decoded content
        """
        raw = self.read_bytes(path)
        try:
            return raw.decode('utf-8', errors=errors)
        except UnicodeDecodeError as e:
            raise EntryReadError(path, e) from e

    def read_base64(self, path):
        return base64.b64encode(self.read_bytes(path)).decode('ascii')

    def get_file_list(self):
        """
        Get list of all files in the extension

        Returns:
            list: One dict per file with path, size and extension
        """
        files = []
        for info in self._zip.infolist():
            if info.is_dir():
                continue
            files.append({
                'path': info.filename,
                'size': info.file_size,
                'extension': PurePosixPath(info.filename).suffix
            })
        return files

    @staticmethod
    def _normalize(path):
        return str(path).replace('\\', '/').lstrip('/')


class ExtensionUnpacker:
    """Unpacks CRX/ZIP extension packages held in memory"""

    def __init__(self, verbose=True):
        self.verbose = verbose

    def unpack(self, data):
        """
        Unpack a .crx or .zip package

        Args:
            data (bytes): Raw package bytes

        Returns:
            ExtensionArchive: Archive view over the extension files

        Raises:
            InvalidArchive: The payload cannot be opened as a ZIP archive
        """
        version = crx_version(data)
        if version is None:
            self._log("[+] No CRX header, reading package as ZIP")
        else:
            self._log(f"[+] CRX version: {version}")
            if version not in (2, 3):
                self._log(f"[!] Unknown CRX version {version}, header left in place")

        archive = ExtensionArchive(strip_crx_header(data))
        self._log(f"[+] Files in package: {len(archive.list_entries())}")
        return archive

    def _log(self, message):
        if self.verbose:
            print(message)
