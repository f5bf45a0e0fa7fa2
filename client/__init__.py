from .session_manager import SessionManager, RenewalError, http_renewer
from .search import SearchClient, RequestGenerations, http_searcher
from .token_storage import MemoryTokenStorage, JsonFileTokenStorage
