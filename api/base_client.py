from abc import ABC, abstractmethod

from models.search_response import SearchOptions, SearchResponse


class BaseSearchClient(ABC):
    """
    Abstract base class for search/answer API clients.
    The synthesis engine and the tool handler only depend on this interface.
    """

    @abstractmethod
    def search(
        self, query: str, model: str, options: SearchOptions | None = None
    ) -> SearchResponse:
        """
        Run exactly one request/response cycle against the API.

        Args:
            query: The user question
            model: Model identifier
            options: Optional request options

        Returns:
            The normalized SearchResponse

        Raises:
            NetworkError: If the transport fails
            APIError: If the API returns a non-success status
        """
