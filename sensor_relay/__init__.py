"""
sensor_relay: WebSocket relay for sensor producers and dashboard peers.

Every connection is classified from its first message (json / numeric / text)
and each inbound message is rebroadcast to all other open connections. Bare
numeric readings are wrapped into a {value, timestamp, source} envelope.
"""

__version__ = "1.0.0"
