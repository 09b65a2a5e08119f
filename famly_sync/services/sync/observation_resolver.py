"""
Observation Resolver - Turn observation ids into MediaReferences

Ids are de-duplicated and sent in chunks of at most ``batch_size`` so a
busy page never produces an oversized request. Chunking does not change
which references come back for an id.
"""
from typing import Iterable, List, Optional

from ...models import MediaReference
from ...utils.logger import get_logger
from .extractor import extract_observation

logger = get_logger('observation_resolver')


class ObservationResolver:
    """Batched observation lookup plus media extraction.

    Example:
        >>> resolver = ObservationResolver(ObservationClient(pool, session, url), batch_size=100)
        >>> refs = resolver.resolve(['obs-1', 'obs-2'])
    """

    def __init__(self, client, batch_size: int = 100):
        """
        Args:
            client: ObservationClient (anything with ``fetch(ids) -> list``)
            batch_size: Max ids per request
        """
        if batch_size < 1:
            raise ValueError('batch_size must be at least 1')
        self.client = client
        self.batch_size = batch_size

    def resolve(self, observation_ids: Iterable[str], issues: Optional[List[str]] = None) -> List[MediaReference]:
        """
        Resolve ids to media references.

        An empty input makes no request. Each id is queried at most once.

        Raises:
            ObservationFetchError: If a batch fails after retries
        """
        ids = list(dict.fromkeys(observation_ids))
        if not ids:
            return []

        refs: List[MediaReference] = []
        seen = set()

        for start in range(0, len(ids), self.batch_size):
            chunk = ids[start:start + self.batch_size]
            logger.debug(f"Downloading observation ids: {chunk}")

            for observation in self.client.fetch(chunk):
                observation_id = observation.get('id')
                if observation_id is not None:
                    if observation_id in seen:
                        continue
                    seen.add(observation_id)
                refs.extend(extract_observation(observation, issues))

        logger.info(f"Resolved {len(ids)} observations into {len(refs)} media items")
        return refs
