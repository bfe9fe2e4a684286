"""
cas_bridge.api.routers

HTTP routers: CAS endpoints and health probes.
"""
