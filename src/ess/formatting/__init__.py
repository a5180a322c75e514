"""Record formatting collaborators.

Built-in formatters:
  - openformat: HTTP formatting service

Implement ``Formatter`` to plug in another formatting backend.
"""

from ess.formatting.base import Formatter
from ess.formatting.openformat import OpenFormatFormatter

__all__ = ["Formatter", "OpenFormatFormatter"]
