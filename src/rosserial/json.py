''' Wrapper module to select the most performant available library to handle
    the equivalent of :func:`json.loads` and :func:`json.dumps`. The bridge
    only needs JSON to load its configuration: the configuration file, and
    dictionary-valued settings given as environment variables.
'''

# Conditional imports pick the fastest decoder present at run time. All of
# them accept bytes or str input; all 'dumps' variants return bytes.

msgspec = None
orjson = None
json = None

try:
    import msgspec
except ImportError:
    pass

if msgspec is None:
    try:
        import orjson
    except ImportError:
        pass

if msgspec is None and orjson is None:
    import json


def json_dumps(*args, **kwargs):
    return json.dumps(*args, **kwargs).encode()

if msgspec is not None:
    encoder = msgspec.json.Encoder()
    decoder = msgspec.json.Decoder()
    dumps = encoder.encode
    loads = decoder.decode
    DecodeError = msgspec.DecodeError
elif orjson is not None:
    dumps = orjson.dumps
    loads = orjson.loads
    DecodeError = orjson.JSONDecodeError
else:
    dumps = json_dumps
    loads = json.loads
    DecodeError = json.JSONDecodeError


def load(path):
    """ Read and decode the JSON file at *path*.
    """

    with open(path, 'rb') as contents:
        raw = contents.read()

    return loads(raw)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
