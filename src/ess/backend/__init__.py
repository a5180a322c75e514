"""SRU backend access - searchRetrieve client and response parser."""

from ess.backend.client import BackendSearchClient
from ess.backend.parser import parse_search_retrieve_response

__all__ = ["BackendSearchClient", "parse_search_retrieve_response"]
