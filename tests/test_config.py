import pytest

import rosserial
from rosserial import config
from rosserial import main


def test_defaults():

    settings = config.load(environ={})

    assert settings == config.defaults
    assert settings.baud == 57600
    assert settings.port == '/dev/ttyUSB0'

    with pytest.raises(AttributeError):
        settings.missing

    # Mutable defaults are copied, not shared.
    settings.peers.append('tcp://elsewhere:11411')
    assert config.defaults['peers'] == []


def test_layers(tmp_path):

    path = tmp_path / 'bridge.json'
    path.write_bytes(b'{"port": "/dev/ttyACM0", "baud": 115200, "parameters": {"gain": 2}}')

    environ = {
        'ROSSERIAL_BAUD': '9600',
        'ROSSERIAL_PEERS': 'tcp://a:11411, tcp://b:11412',
        'ROSSERIAL_RENEGOTIATE_ON_UNKNOWN': 'no',
        'UNRELATED': 'ignored',
    }

    settings = config.load(path, environ=environ, port=None, timeout=0.5)

    assert settings.port == '/dev/ttyACM0'
    assert settings.baud == 9600
    assert settings.peers == ['tcp://a:11411', 'tcp://b:11412']
    assert settings.renegotiate_on_unknown is False
    assert settings.parameters == {'gain': 2}
    assert settings.timeout == 0.5

    settings = config.load(path, environ=environ, baud=19200)
    assert settings.baud == 19200


def test_convert():

    assert config.convert('negotiation_retry', '2.5') == 2.5
    assert config.convert('reset_threshold', 0) == 0
    assert config.convert('bus_port', None) is None
    assert config.convert('parameters', '{"names": ["a", "b"]}') == {'names': ['a', 'b']}
    assert config.convert('renegotiate_on_unknown', 'TRUE') is True

    with pytest.raises(KeyError):
        config.convert('colour', 'blue')

    with pytest.raises(ValueError):
        config.convert('baud', 'fast')

    with pytest.raises(ValueError):
        config.convert('renegotiate_on_unknown', 'perhaps')

    with pytest.raises(ValueError):
        config.convert('parameters', '[1, 2]')

    with pytest.raises(ValueError):
        config.convert('port', None)


def test_bad_file(tmp_path):

    path = tmp_path / 'bridge.json'
    path.write_bytes(b'[1, 2, 3]')

    with pytest.raises(ValueError):
        config.load(path, environ={})

    path.write_bytes(b'{"colour": "blue"}')

    with pytest.raises(KeyError):
        config.load(path, environ={})


def test_command_line(tmp_path):

    arguments = main.parse(['--port', '/dev/ttyS1', '--baud', '115200',
                            '--peer', 'tcp://a:11411', '--peer', 'tcp://b:11411', '-v'])

    assert arguments.port == '/dev/ttyS1'
    assert arguments.baud == 115200
    assert arguments.peers == ['tcp://a:11411', 'tcp://b:11411']
    assert arguments.verbose is True
    assert arguments.config is None

    path = tmp_path / 'broken.json'
    path.write_bytes(b'{"baud": ')

    assert main.main(['--config', str(path)]) == 2


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
