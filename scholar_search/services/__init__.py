"""검색 클라이언트 서비스 - export only."""

from .scholar_client import ConnectionProbe, ScholarSearchClient

__all__ = ["ScholarSearchClient", "ConnectionProbe"]
