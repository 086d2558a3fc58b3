"""Build route, rule, neighbour and traffic-control rtnetlink requests and send them through a transport."""

__version__ = "0.1.0"
__all__ = ["core", "route", "rule", "neighbour", "tc", "tc_query"]