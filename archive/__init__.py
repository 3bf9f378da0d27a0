from archive.models import MementoReference, FetchedMemento, SearchHit, to_archive_timestamp
from archive.errors import ArchiveError, NetworkError, FetchError, SearchError
from archive.fetcher import MementoFetcher
from archive.search import SearchResolver
