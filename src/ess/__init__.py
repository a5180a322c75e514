"""ESS: External Search Service gateway.

Forwards simplified search requests to an SRU search proxy and formats each
returned record through a formatting service.
"""

__version__ = "0.1.0"
