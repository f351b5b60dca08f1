"""Reserved topic ids.

Keep these in one place to avoid magic numbers in the dispatch code. Ids
below FIRST_USER_TOPIC are reserved; the device numbers its own topics from
FIRST_USER_TOPIC upward.
"""

# Negotiation. A zero-length frame on ID_PUBLISHER from the host is the
# negotiation request; TopicInfo frames on these ids from the device are the
# responses, one per topic.
ID_PUBLISHER = 0
ID_SUBSCRIBER = 1

# Services are reserved on the wire but not bridged.
ID_SERVICE_SERVER = 2
ID_SERVICE_CLIENT = 4

ID_PARAMETER_REQUEST = 6
ID_LOG = 7
ID_TIME = 10
ID_TX_STOP = 11

FIRST_USER_TOPIC = 100

NAMES = {
    ID_PUBLISHER: 'ID_PUBLISHER',
    ID_SUBSCRIBER: 'ID_SUBSCRIBER',
    ID_SERVICE_SERVER: 'ID_SERVICE_SERVER',
    ID_SERVICE_CLIENT: 'ID_SERVICE_CLIENT',
    ID_PARAMETER_REQUEST: 'ID_PARAMETER_REQUEST',
    ID_LOG: 'ID_LOG',
    ID_TIME: 'ID_TIME',
    ID_TX_STOP: 'ID_TX_STOP',
}


def is_reserved(topic_id):
    return topic_id < FIRST_USER_TOPIC
