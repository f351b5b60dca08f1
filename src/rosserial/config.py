""" Bridge configuration. Settings come from three layers, each overriding
    the one before: the built-in :data:`defaults`, an optional JSON file, and
    ``ROSSERIAL_*`` environment variables (``ROSSERIAL_PORT``,
    ``ROSSERIAL_BAUD``, and so on). Keyword overrides passed to :func:`load`,
    typically from the command line, win over all three.
"""

import os

from . import json


defaults = {
    'port': '/dev/ttyUSB0',
    'baud': 57600,
    'timeout': 0.1,
    'bus_port': None,
    'peers': [],
    'max_payload': 0xFFFF,
    'negotiation_retry': 5.0,
    'reset_threshold': 10,
    'renegotiate_on_unknown': True,
    'parameters': {},
    'log_level': 'INFO',
}

_types = {
    'port': str,
    'baud': int,
    'timeout': float,
    'bus_port': int,
    'peers': list,
    'max_payload': int,
    'negotiation_retry': float,
    'reset_threshold': int,
    'renegotiate_on_unknown': bool,
    'parameters': dict,
    'log_level': str,
}

prefix = 'ROSSERIAL_'


class Configuration(dict):
    """ A dictionary of settings, with attribute access for convenience:
        ``config.baud`` is ``config['baud']``.
    """

    def __getattr__(self, name):
        try:
            return self[name]
        except KeyError:
            raise AttributeError(name) from None


# end of class Configuration



def load(path=None, environ=None, **overrides):
    """ Return a :class:`Configuration` built from the defaults, the JSON
        file at *path* (if any), the environment (``os.environ`` unless
        *environ* is provided), and finally any keyword *overrides* whose
        value is not None.
    """

    config = Configuration(defaults)
    config['peers'] = list(defaults['peers'])
    config['parameters'] = dict(defaults['parameters'])

    if path is not None:
        contents = json.load(path)

        if isinstance(contents, dict):
            pass
        else:
            raise ValueError('configuration file must contain a JSON object: ' + str(path))

        for key, value in contents.items():
            config[key] = convert(key, value)

    if environ is None:
        environ = os.environ

    for key in defaults:
        name = prefix + key.upper()
        try:
            value = environ[name]
        except KeyError:
            continue

        config[key] = convert(key, value)

    for key, value in overrides.items():
        if value is None:
            continue
        config[key] = convert(key, value)

    return config



def convert(key, value):
    """ Coerce *value* to the type expected for *key*. Strings, as found in
        the environment, are parsed: booleans accept 1/0, true/false, yes/no;
        lists are comma-separated; dictionaries are JSON.
    """

    try:
        expected = _types[key]
    except KeyError:
        raise KeyError('unknown configuration key: ' + str(key)) from None

    if value is None:
        if defaults[key] is None:
            return None
        raise ValueError('%s cannot be null' % (key))

    if expected is bool:
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in ('1', 'true', 'yes', 'on'):
                return True
            if lowered in ('0', 'false', 'no', 'off'):
                return False
            raise ValueError('%s: not a boolean: %r' % (key, value))
        return bool(value)

    if expected is list:
        if isinstance(value, str):
            return [item.strip() for item in value.split(',') if item.strip()]
        return list(value)

    if expected is dict:
        if isinstance(value, (str, bytes)):
            value = json.loads(value)
        if isinstance(value, dict):
            return dict(value)
        raise ValueError('%s: expected a JSON object' % (key))

    return expected(value)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
