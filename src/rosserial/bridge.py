""" The :class:`SerialBridge` ties one serial device to a pub/sub bus. It
    owns the read loop on the device stream, answers the device's
    negotiation, time, log, and parameter traffic, and keeps one bus
    binding open per negotiated topic: a publication for every topic the
    device publishes, a subscription for every topic the device subscribes
    to.
"""

import functools
import logging
import threading
import time

from . import msg
from .bus.base import Publication
from .errors import BusError, DeserializationFailure, NegotiationConflict
from .errors import TransportFault, UnknownMessageType, UnknownTopic
from .protocol import frame
from .protocol import ids
from .protocol.sender import PacketSender
from .topics import Direction, Entry, TopicRegistry

logger = logging.getLogger(__name__)
device_logger = logging.getLogger('rosserial.device')

TOPIC_INFO = 'rosserial_msgs/TopicInfo'

counters = ('frames', 'corrupt', 'unknown', 'undecodable', 'published',
            'forwarded', 'negotiated', 'rejected', 'resets')

# rosserial_msgs/Log levels to Python logging levels.
log_levels = {
    0: logging.DEBUG,
    1: logging.INFO,
    2: logging.WARNING,
    3: logging.ERROR,
    4: logging.CRITICAL,
}


class SerialBridge:
    """ Bridge the device on the other end of *reader* and *writer*, a
        :class:`rosserial.transport.Reader` and
        :class:`rosserial.transport.Writer`, to *bus*, a
        :class:`rosserial.bus.Bus` instance. Message types are resolved by
        name through *codecs*, which defaults to :data:`rosserial.msg.registry`.

        The remaining keyword arguments mirror the configuration keys of the
        same names in :mod:`rosserial.config`:

        *max_payload* caps the payload length accepted from the device;
        longer frames are treated as corrupt. *negotiation_retry* is the
        interval, in seconds, at which the negotiation request is repeated
        while no topics are known (None disables the retry).
        *reset_threshold* is the number of consecutive corrupt frames taken
        to mean the device has reset (None disables the heuristic).
        *renegotiate_on_unknown* re-requests negotiation when a frame arrives
        for an unknown topic id, at most once per *negotiation_retry*
        seconds. *parameters* is a dictionary of values served to the device
        when it requests a parameter by name.

        :ivar registry: The :class:`rosserial.topics.TopicRegistry`.
        :ivar stats: A dictionary of event counters.
        :ivar error: The :class:`rosserial.errors.TransportFault` that
                     terminated the read loop, if any.
    """

    def __init__(self, reader, writer, bus, codecs=None,
                 max_payload=frame.MAX_PAYLOAD, negotiation_retry=5.0,
                 reset_threshold=10, renegotiate_on_unknown=True,
                 parameters=None):

        if codecs is None:
            codecs = msg.registry

        self.reader = reader
        self.sender = PacketSender(writer)
        self.bus = bus
        self.codecs = codecs

        self.max_payload = max_payload
        self.negotiation_retry = negotiation_retry
        self.reset_threshold = reset_threshold
        self.renegotiate_on_unknown = renegotiate_on_unknown
        self.parameters = dict(parameters or ())

        self.registry = TopicRegistry()
        self.bindings = dict()
        self.bindings_lock = threading.RLock()

        self.stats = dict.fromkeys(counters, 0)
        self.stats_lock = threading.Lock()

        self.error = None
        self.shutdown_requested = False
        self.last_request = None
        self.last_sync = None
        self.corrupt_run = 0

        self.alarm = threading.Event()
        self.thread = None
        self.watchdog = None

        self.handlers = {
            ids.ID_PUBLISHER: functools.partial(self._negotiate, direction=Direction.PUBLICATION),
            ids.ID_SUBSCRIBER: functools.partial(self._negotiate, direction=Direction.SUBSCRIPTION),
            ids.ID_SERVICE_SERVER: self._service,
            ids.ID_SERVICE_CLIENT: self._service,
            ids.ID_PARAMETER_REQUEST: self._parameter,
            ids.ID_LOG: self._log,
            ids.ID_TIME: self._time,
            ids.ID_TX_STOP: self._tx_stop,
        }


    @classmethod
    def from_config(cls, reader, writer, bus, config, codecs=None):
        """ Create a :class:`SerialBridge` using the settings in *config*, a
            :class:`rosserial.config.Configuration` instance.
        """

        return cls(reader, writer, bus, codecs,
                   max_payload=config['max_payload'],
                   negotiation_retry=config['negotiation_retry'] or None,
                   reset_threshold=config['reset_threshold'] or None,
                   renegotiate_on_unknown=config['renegotiate_on_unknown'],
                   parameters=config['parameters'])


    def _count(self, counter):
        with self.stats_lock:
            self.stats[counter] += 1


    # Lifecycle.

    def start(self):
        """ Send the initial negotiation request and start the background
            reader thread, plus the negotiation retry thread if enabled.
        """

        if self.thread is not None:
            raise RuntimeError('bridge already started')

        self.request_topics()

        self.thread = threading.Thread(target=self._run_thread, name='rosserial-reader')
        self.thread.daemon = True
        self.thread.start()

        if self.negotiation_retry:
            self.watchdog = threading.Thread(target=self._watch, name='rosserial-negotiation')
            self.watchdog.daemon = True
            self.watchdog.start()


    def request_topics(self):
        """ Ask the device to (re-)advertise all of its topics. Safe to call
            at any time; identical re-advertisements are no-ops.
        """

        self.last_request = time.monotonic()
        self.sender.send(ids.ID_PUBLISHER, b'')
        logger.debug("negotiation request sent")


    def run(self):
        """ Run the read loop in the calling thread until :func:`shutdown`
            is called or the transport fails. A transport failure is stored
            as :attr:`error` and re-raised; everything else is absorbed.
        """

        try:
            while self.shutdown_requested == False:
                self.spin_once()

        except TransportFault as e:
            if self.shutdown_requested:
                return

            self.error = e
            logger.error("transport failed, bridge terminating: %s", e)
            self._teardown()
            raise


    def _run_thread(self):

        try:
            self.run()
        except TransportFault:
            # Already stored in self.error; join() surfaces it.
            pass

        self.alarm.set()


    def _watch(self):
        """ Repeat the negotiation request until the device responds. The
            cadence follows the request time, so an explicit
            :func:`request_topics` call postpones the next retry.
        """

        interval = self.negotiation_retry

        while self.shutdown_requested == False and self.error is None:
            self.alarm.wait(interval)

            if self.shutdown_requested or self.error is not None:
                break

            if len(self.registry) > 0:
                continue

            elapsed = time.monotonic() - self.last_request
            if elapsed < interval:
                continue

            logger.info("no response from device, repeating negotiation request")

            try:
                self.request_topics()
            except TransportFault as e:
                logger.debug("negotiation retry failed: %s", e)
                break


    def shutdown(self, timeout=5):
        """ Stop the read loop, close both streams, and tear down every bus
            binding this bridge created.
        """

        if self.shutdown_requested:
            return

        self.shutdown_requested = True
        self.alarm.set()

        self.reader.close()
        self._teardown()
        self.sender.close()

        current = threading.current_thread()

        for thread in (self.thread, self.watchdog):
            if thread is not None and thread is not current:
                thread.join(timeout)

        logger.debug("bridge shut down")


    def join(self, timeout=None):
        """ Block until the reader thread exits. If it exited because the
            transport failed, that :class:`rosserial.errors.TransportFault`
            is raised here.
        """

        if self.thread is not None:
            self.thread.join(timeout)

        if self.error is not None:
            raise self.error


    def alive(self):
        return self.thread is not None and self.thread.is_alive()


    # Read loop.

    def spin_once(self):
        """ Decode and dispatch a single frame, blocking until one arrives.
        """

        result = frame.decode(self.reader, self.max_payload)

        if isinstance(result, frame.CorruptFrame):
            self._corrupt(result)
            return

        self.corrupt_run = 0
        self._count('frames')

        try:
            self.dispatch(result.topic_id, result.payload)
        except TransportFault:
            raise
        except Exception:
            logger.exception("error handling frame on topic id %d", result.topic_id)


    def _corrupt(self, corrupt):

        self._count('corrupt')
        self.corrupt_run += 1
        logger.debug("discarding corrupt frame: %r", corrupt)

        threshold = self.reset_threshold

        if threshold and self.corrupt_run >= threshold:
            logger.warning("%d consecutive corrupt frames, assuming the device reset", self.corrupt_run)
            self.corrupt_run = 0
            self.reset()


    def dispatch(self, topic_id, payload):
        """ Route one decoded frame: reserved ids go to their handlers,
            everything else is data for a negotiated topic.
        """

        try:
            handler = self.handlers[topic_id]
        except KeyError:
            pass
        else:
            handler(payload)
            return

        if ids.is_reserved(topic_id):
            logger.debug("ignoring frame on unassigned reserved topic id %d", topic_id)
            return

        try:
            entry = self.registry.get(topic_id)
        except UnknownTopic as e:
            self._unknown(topic_id, e)
            return

        if entry.direction is not Direction.PUBLICATION:
            logger.debug("ignoring device frame on subscribed topic %s", entry.topic_name)
            return

        try:
            self.codecs.deserialize(entry.message_type, payload)
        except (DeserializationFailure, UnknownMessageType) as e:
            self._count('undecodable')
            logger.warning("dropping frame on %s: %s", entry.topic_name, e)
            return

        with self.bindings_lock:
            publication = self.bindings.get(topic_id)

        if publication is None:
            return

        try:
            publication.publish(payload)
        except BusError as e:
            logger.warning("cannot publish on %s: %s", entry.topic_name, e)
            return

        self._count('published')


    def _unknown(self, topic_id, error):

        self._count('unknown')
        logger.debug("dropping frame: %s", error)

        if self.renegotiate_on_unknown:
            interval = self.negotiation_retry or 1.0
            last = self.last_request

            if last is None or time.monotonic() - last >= interval:
                logger.info("unknown topic id %d, requesting negotiation", topic_id)
                self.request_topics()


    # Negotiation.

    def _negotiate(self, payload, direction):

        try:
            info = self.codecs.deserialize(TOPIC_INFO, payload)
        except (DeserializationFailure, UnknownMessageType) as e:
            self._count('rejected')
            logger.warning("malformed topic negotiation: %s", e)
            return

        topic_id = info['topic_id']
        topic_name = info['topic_name']
        message_type = info['message_type']

        if ids.is_reserved(topic_id):
            self._count('rejected')
            logger.warning("device announced %s on reserved topic id %d, ignoring", topic_name, topic_id)
            return

        if topic_name == '' or message_type == '':
            self._count('rejected')
            logger.warning("device announced topic id %d without a name or type, ignoring", topic_id)
            return

        entry = Entry(topic_id, topic_name, message_type, direction)

        with self.bindings_lock:
            if self.shutdown_requested:
                return

            try:
                is_new, replaced = self.registry.register(entry, replace=False)
            except NegotiationConflict as conflict:
                logger.warning("%s", conflict)
                is_new, replaced = self.registry.register(entry)

            if is_new == False:
                logger.debug("topic id %d already negotiated", topic_id)
                return

            if replaced is not None:
                self._unbind(replaced)

            try:
                self._bind(entry)
            except BusError as e:
                self.registry.remove(topic_id)
                self._count('rejected')
                logger.error("cannot bind %s on the bus: %s", topic_name, e)
                return

        self._count('negotiated')

        if message_type not in self.codecs:
            logger.warning("no codec for %s; frames on %s will be dropped", message_type, topic_name)

        if direction is Direction.PUBLICATION:
            logger.info("device publishes %s [%s] on topic id %d", topic_name, message_type, topic_id)
        else:
            logger.info("device subscribes to %s [%s] on topic id %d", topic_name, message_type, topic_id)


    def _bind(self, entry):

        if entry.direction is Direction.PUBLICATION:
            handle = self.bus.advertise(entry.topic_name, entry.message_type)
        else:
            callback = functools.partial(self._forward, entry)
            handle = self.bus.subscribe(entry.topic_name, entry.message_type, callback)

        self.bindings[entry.topic_id] = handle


    def _unbind(self, entry):

        handle = self.bindings.pop(entry.topic_id, None)

        if handle is not None:
            self._release(handle)


    def _release(self, handle):

        try:
            if isinstance(handle, Publication):
                self.bus.unadvertise(handle)
            else:
                self.bus.unsubscribe(handle)
        except BusError as e:
            logger.warning("cannot release %r: %s", handle, e)


    def _teardown(self):
        """ Forget every topic and release every bus binding.
        """

        with self.bindings_lock:
            for entry in self.registry.clear():
                self._unbind(entry)

            # Anything left has no registry entry any more.
            for handle in list(self.bindings.values()):
                self._release(handle)

            self.bindings.clear()


    def reset(self):
        """ Treat the device as freshly rebooted: tear down every topic and
            ask the device to negotiate again.
        """

        self._teardown()
        self._count('resets')

        if self.shutdown_requested == False:
            self.request_topics()


    def _forward(self, entry, data):
        """ Bus callback for a topic the device subscribes to. Runs on a bus
            thread; nothing raised here may escape into the bus.
        """

        if self.registry.by_id(entry.topic_id) != entry:
            # Torn down or redeclared since the subscription was made.
            return

        try:
            self.sender.send(entry.topic_id, data)
        except TransportFault as e:
            logger.warning("cannot forward %s to the device: %s", entry.topic_name, e)
            return
        except ValueError as e:
            logger.warning("cannot forward %s to the device: %s", entry.topic_name, e)
            return

        self._count('forwarded')


    # Reserved topics.

    def _service(self, payload):
        logger.warning("device requested a service; services are not bridged")


    def _time(self, payload):
        """ Reply to a time-sync request with the current host time.
        """

        now = time.time()
        secs = int(now)
        nsecs = int((now - secs) * 1e9)

        reply = self.codecs.serialize('std_msgs/Time', {'data': {'secs': secs, 'nsecs': nsecs}})
        self.last_sync = time.monotonic()
        self.sender.send(ids.ID_TIME, reply)


    def _log(self, payload):
        """ Re-emit a device log record through Python logging.
        """

        try:
            record = self.codecs.deserialize('rosserial_msgs/Log', payload)
        except (DeserializationFailure, UnknownMessageType) as e:
            self._count('undecodable')
            logger.warning("malformed device log record: %s", e)
            return

        level = log_levels.get(record['level'], logging.INFO)
        device_logger.log(level, "%s", record['msg'])


    def _parameter(self, payload):
        """ Answer a parameter request from :attr:`parameters`. Unknown
            names, and values that cannot be expressed as a list of ints,
            floats, or strings, get an empty response.
        """

        try:
            request = self.codecs.deserialize('rosserial_msgs/RequestParamRequest', payload)
        except (DeserializationFailure, UnknownMessageType) as e:
            self._count('undecodable')
            logger.warning("malformed parameter request: %s", e)
            return

        name = request['name']
        response = {'ints': [], 'floats': [], 'strings': []}

        value = None
        bare = name.lstrip('/')

        for candidate in (name, bare, '/' + bare):
            if candidate in self.parameters:
                value = self.parameters[candidate]
                break

        if value is None:
            logger.warning("device requested unknown parameter %s", name)
        else:
            field = _parameter_field(value)
            if field is None:
                logger.warning("parameter %s has an unsupported type", name)
            else:
                if isinstance(value, (list, tuple)):
                    response[field] = list(value)
                else:
                    response[field] = [value]

        try:
            reply = self.codecs.serialize('rosserial_msgs/RequestParamResponse', response)
        except ValueError as e:
            logger.warning("parameter %s cannot be sent: %s", name, e)
            reply = self.codecs.serialize('rosserial_msgs/RequestParamResponse', {})

        self.sender.send(ids.ID_PARAMETER_REQUEST, reply)


    def _tx_stop(self, payload):
        logger.info("device announced a reset")
        self.reset()


# end of class SerialBridge



def _parameter_field(value):
    """ Return the RequestParamResponse field able to carry *value*, or None.
    """

    if isinstance(value, (list, tuple)):
        if len(value) == 0:
            return 'ints'
        fields = set(_parameter_field(element) for element in value)
        if len(fields) == 1 and None not in fields and not isinstance(value[0], (list, tuple)):
            return fields.pop()
        return None

    if isinstance(value, bool) or isinstance(value, int):
        return 'ints'
    if isinstance(value, float):
        return 'floats'
    if isinstance(value, str):
        return 'strings'

    return None


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
