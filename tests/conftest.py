import io
import os
import struct
import sys
import zipfile

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'src')))


def build_zip(files):
    """files: {path: str or bytes} -> ZIP archive bytes"""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, 'w', zipfile.ZIP_DEFLATED) as zf:
        for path, content in files.items():
            if isinstance(content, str):
                content = content.encode('utf-8')
            zf.writestr(path, content)
    return buffer.getvalue()


def corrupt_entry(zip_data, name):
    """Overwrite the start of one entry's DEFLATE stream with 0xFF bytes"""
    with zipfile.ZipFile(io.BytesIO(zip_data)) as zf:
        info = zf.getinfo(name)
    data = bytearray(zip_data)
    name_len, extra_len = struct.unpack_from('<HH', data, info.header_offset + 26)
    start = info.header_offset + 30 + name_len + extra_len
    data[start:start + 8] = b'\xff' * 8
    return bytes(data)


def build_crx2(zip_data, public_key=b'K' * 16, signature=b'S' * 8):
    header = b'Cr24' + struct.pack('<III', 2, len(public_key), len(signature))
    return header + public_key + signature + zip_data


def build_crx3(zip_data, header=b'\x0a\x04test'):
    return b'Cr24' + struct.pack('<II', 3, len(header)) + header + zip_data


@pytest.fixture
def make_zip():
    return build_zip


@pytest.fixture
def break_entry():
    return corrupt_entry


@pytest.fixture
def make_crx2():
    return build_crx2


@pytest.fixture
def make_crx3():
    return build_crx3
