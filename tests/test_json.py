import json

import pytest

import rosserial


def test_json_encode_and_decode():
    encode_and_decode(json.dumps, json.loads, dump_is_bytes=False)


def test_rosserial_encode_and_decode():
    encode_and_decode(rosserial.json.dumps, rosserial.json.loads)


def encode_and_decode(dumps, loads, dump_is_bytes=True):

    input_dictionary = dict()
    input_dictionary['list'] = [1, 2, 3, 'a', 'b', None, 'c', 'z']
    input_dictionary['dict'] = {'one': 1.5, 'two': 2}
    input_dictionary['none'] = None
    input_dictionary['true'] = True
    input_dictionary['false'] = False

    encoded = dumps(input_dictionary)

    if dump_is_bytes:
        assert isinstance(encoded, bytes)
    else:
        assert isinstance(encoded, str)

    # Whitespace in the encoded form varies between the libraries the
    # wrapper may select, so only the decoded form is compared.

    decoded = loads(encoded)
    assert decoded == input_dictionary


def test_load(tmp_path):

    path = tmp_path / 'settings.json'
    path.write_bytes(b'{"baud": 115200, "peers": ["tcp://a:11411"]}')

    assert rosserial.json.load(path) == {'baud': 115200, 'peers': ['tcp://a:11411']}

    path.write_bytes(b'{"baud": ')

    with pytest.raises(rosserial.json.DecodeError):
        rosserial.json.load(path)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
