from abc import ABC, abstractmethod
from typing import Any


class AbstractPlacesClient(ABC):
	"""Interface for Places providers; payloads are passed through untouched."""

	@abstractmethod
	async def autocomplete(self, text: str) -> dict[str, Any]:
		"""Return autocomplete predictions for ``text``.

		Raises:
			UpstreamAppError: If the provider call fails or returns invalid JSON.
		"""
		...

	@abstractmethod
	async def details(self, place_id: str) -> dict[str, Any]:
		"""Return details for one place.

		Raises:
			UpstreamAppError: If the provider call fails or returns invalid JSON.
		"""
		...

	async def aclose(self) -> None:
		"""Release pooled connections, if any."""
