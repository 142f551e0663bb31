"""wifi-radar - live wireless link quality monitor.

Samples link quality for a set of wireless interfaces, keeps a short
in-memory history per interface and serves status, best-link and a live
event stream over HTTP.
"""

__version__ = "0.1.0"
