""" Command-line entry point: open a serial port, start a ZeroMQ bus, and
    bridge the two until interrupted.
"""

import argparse
import logging
import signal
import sys
import threading

from . import config
from . import json
from .bridge import SerialBridge
from .bus.zmq import ZmqBus
from .errors import BridgeError, TransportFault
from .transport import serial

logger = logging.getLogger('rosserial')


def parse(arguments=None):

    parser = argparse.ArgumentParser(prog='rosserial-bridge',
        description='Bridge a rosserial device to a ZeroMQ pub/sub bus.')

    parser.add_argument('--config', metavar='FILE',
        help='JSON configuration file')
    parser.add_argument('--port', metavar='DEVICE',
        help='serial port (default %s)' % (config.defaults['port']))
    parser.add_argument('--baud', type=int,
        help='baud rate (default %d)' % (config.defaults['baud']))
    parser.add_argument('--bus-port', type=int, metavar='N',
        help='PUB port for the bus (default: first free port)')
    parser.add_argument('--peer', action='append', dest='peers', metavar='ADDRESS',
        help='additional bus peer, e.g. tcp://host:11411 (repeatable)')
    parser.add_argument('-v', '--verbose', action='store_true',
        help='log at debug level')

    return parser.parse_args(arguments)



def main(arguments=None):

    arguments = parse(arguments)

    log_level = 'DEBUG' if arguments.verbose else None

    try:
        settings = config.load(arguments.config,
            port=arguments.port,
            baud=arguments.baud,
            bus_port=arguments.bus_port,
            peers=arguments.peers,
            log_level=log_level)
    except (OSError, ValueError, KeyError, json.DecodeError) as e:
        sys.stderr.write('rosserial-bridge: bad configuration: %s\n' % (e))
        return 2

    logging.basicConfig(level=settings.log_level.upper(),
        format='%(asctime)s %(name)s %(levelname)s: %(message)s')

    try:
        reader, writer = serial.open(settings.port, settings.baud, settings.timeout)
    except TransportFault as e:
        logger.error("%s", e)
        return 1

    try:
        bus = ZmqBus(port=settings.bus_port, peers=settings.peers)
    except BridgeError as e:
        logger.error("%s", e)
        reader.close()
        return 1

    logger.info("bus listening on port %d", bus.port)

    bridge = SerialBridge.from_config(reader, writer, bus, settings)
    stop = threading.Event()

    def interrupted(signum, frame):
        stop.set()

    signal.signal(signal.SIGTERM, interrupted)
    signal.signal(signal.SIGINT, interrupted)

    status = 0

    try:
        bridge.start()

        while not stop.is_set() and bridge.alive():
            stop.wait(0.5)

        if bridge.error is not None:
            logger.error("bridge stopped: %s", bridge.error)
            status = 1

    except TransportFault as e:
        logger.error("bridge failed: %s", e)
        status = 1

    finally:
        bridge.shutdown()
        bus.close()

    return status


if __name__ == '__main__':
    sys.exit(main())


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
