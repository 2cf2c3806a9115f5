import json

from crx_analyzer.config import DEFAULT_CONFIG, load_config
from crx_analyzer.utils import calculate_sha256, extract_extension_id, format_bytes, round_half_up, save_json


def test_extract_chrome_id():
    url = 'https://chromewebstore.google.com/detail/ublock-origin/cjpalhdlnbpafiamejdnhcphjbkeiagm'
    assert extract_extension_id(url) == ('cjpalhdlnbpafiamejdnhcphjbkeiagm', 'chrome')

    legacy = 'https://chrome.google.com/webstore/detail/CJPALHDLNBPAFIAMEJDNHCPHJBKEIAGM?hl=en'
    assert extract_extension_id(legacy) == ('cjpalhdlnbpafiamejdnhcphjbkeiagm', 'chrome')


def test_extract_edge_id():
    url = 'https://microsoftedge.microsoft.com/addons/detail/ublock-origin/odlbpnoocpeebfbbnocajebccdbogpbe'
    assert extract_extension_id(url) == ('odlbpnoocpeebfbbnocajebccdbogpbe', 'edge')


def test_extract_unknown_url():
    assert extract_extension_id('https://addons.mozilla.org/firefox/addon/ublock-origin/') is None
    assert extract_extension_id('https://chromewebstore.google.com/category/extensions') is None


def test_round_half_up():
    assert round_half_up(0.5) == 1
    assert round_half_up(2.5) == 3
    assert round_half_up(12.49) == 12
    assert round_half_up(0) == 0


def test_format_bytes():
    assert format_bytes(512) == '512.00 B'
    assert format_bytes(1536) == '1.50 KB'
    assert format_bytes(5 * 1024 * 1024) == '5.00 MB'


def test_sha256():
    assert calculate_sha256(b'') == 'e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855'


def test_save_json_creates_directories(tmp_path):
    path = tmp_path / 'reports' / 'nested' / 'report.json'
    save_json({'name': 'Ünïcode'}, path)
    assert json.loads(path.read_text(encoding='utf-8')) == {'name': 'Ünïcode'}


def test_load_config_defaults(tmp_path):
    config = load_config(tmp_path / 'missing.json')
    assert config == DEFAULT_CONFIG
    config['web']['port'] = 1
    assert DEFAULT_CONFIG['web']['port'] == 8000


def test_load_config_merges_sections(tmp_path):
    path = tmp_path / 'config.json'
    path.write_text(json.dumps({'web': {'port': 9000}, 'extra': {'flag': True}}), encoding='utf-8')
    config = load_config(path)
    assert config['web']['port'] == 9000
    assert config['web']['host'] == DEFAULT_CONFIG['web']['host']
    assert config['extra'] == {'flag': True}


def test_load_config_invalid_file(tmp_path):
    path = tmp_path / 'config.json'
    path.write_text('{not json', encoding='utf-8')
    assert load_config(path) == DEFAULT_CONFIG

    path.write_text('[1, 2]', encoding='utf-8')
    assert load_config(path) == DEFAULT_CONFIG
