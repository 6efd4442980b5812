"""Routing Domain"""

from .router import ExchangeHandler, IRouter, IRouteTable

__all__ = ["ExchangeHandler", "IRouter", "IRouteTable"]
