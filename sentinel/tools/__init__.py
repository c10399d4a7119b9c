"""
Module: sentinel.tools.__init__

Tools exposed to a tool-calling model. See sentinel.tools.registry for discovery and dispatch.
"""
