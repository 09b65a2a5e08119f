"""
Observation batch query client
"""
from typing import Any, Dict, List, Sequence

from ..utils.logger import get_logger
from .auth import Session
from .errors import ObservationFetchError
from .queries import OBSERVATIONS_OPERATION, OBSERVATIONS_QUERY

logger = get_logger('observations')


class ObservationClient:
    """Runs the ObservationsByIds query for one batch of ids."""

    def __init__(self, pool, session: Session, graphql_url: str):
        self.pool = pool
        self.session = session
        self.graphql_url = graphql_url

    def fetch(self, observation_ids: Sequence[str]) -> List[Dict[str, Any]]:
        """
        Fetch raw observation records.

        Args:
            observation_ids: Ids to look up, sent in a single request

        Returns:
            The ``results`` list of the query

        Raises:
            ObservationFetchError: On HTTP failure after retries, GraphQL
                errors, or a malformed body
        """
        if not observation_ids:
            return []

        payload = {
            'operationName': OBSERVATIONS_OPERATION,
            'variables': {'observationIds': list(observation_ids)},
            'query': OBSERVATIONS_QUERY,
        }

        resp = self.pool.request_with_retry(
            'POST',
            self.graphql_url,
            error_cls=ObservationFetchError,
            description=f'observation batch ({len(observation_ids)} ids)',
            json=payload,
            headers=self.session.headers(),
        )

        try:
            body = resp.json()
        except ValueError as e:
            raise ObservationFetchError('Observation response is not valid JSON') from e

        if not isinstance(body, dict):
            raise ObservationFetchError('Observation response is not a JSON object')

        if body.get('errors'):
            messages = '; '.join(str(e.get('message', e)) for e in body['errors'] if e)
            raise ObservationFetchError(f'Observation query rejected: {messages}')

        observations = (((body.get('data') or {}).get('childDevelopment') or {}).get('observations')) or {}
        results = observations.get('results')
        if not isinstance(results, list):
            raise ObservationFetchError('Observation response has no results list')

        return results
