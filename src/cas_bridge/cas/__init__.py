"""
cas_bridge.cas

CAS protocol package.

Responsibilities:
- Render CAS serviceValidate envelopes (XML and JSON).
- Service URL normalization and request URL reconstruction.
"""

# Package marker.
