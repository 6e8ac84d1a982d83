import json
import time
from http.client import HTTPException
from urllib.error import HTTPError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

from flask import current_app

from qreview.errors import UpstreamUnavailable
from qreview.services.validators import is_valid_siret

DEFAULT_COMPANY_LABEL = "Entreprise vérifiée"
USER_AGENT = "QReview/1.0 (company review moderation)"


def _is_transient(exc):
    if isinstance(exc, HTTPError):
        return exc.code >= 500
    return isinstance(exc, (OSError, HTTPException))


def _company_name(result):
    for key in ("nom_complet", "nom_raison_sociale"):
        value = result.get(key)
        if isinstance(value, str) and value.strip():
            return value
    return DEFAULT_COMPANY_LABEL


class RegistryClient:
    """Lookup of establishments in the French business registry by SIRET."""

    def __init__(self, base_url, timeout=10.0, max_attempts=2, retry_delay=1.5):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_attempts = max(1, int(max_attempts))
        self.retry_delay = retry_delay

    @classmethod
    def from_config(cls, config):
        return cls(
            base_url=config["SIRET_API_URL"],
            timeout=config["SIRET_TIMEOUT"],
            max_attempts=config["SIRET_MAX_ATTEMPTS"],
            retry_delay=config["SIRET_RETRY_DELAY"],
        )

    def _search(self, siret):
        req = Request(
            f"{self.base_url}/search?{urlencode({'q': siret})}",
            headers={"Accept": "application/json", "User-Agent": USER_AGENT},
        )
        with urlopen(req, timeout=self.timeout) as response:
            return json.loads(response.read().decode("utf-8"))

    def lookup(self, siret):
        """Return the canonical company name, or None when the registry has no exact match.

        Raises UpstreamUnavailable when the registry cannot be reached or answers
        with something other than a search result.
        """
        if not is_valid_siret(siret):
            return None

        data = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                data = self._search(siret)
                break
            except ValueError as exc:
                raise UpstreamUnavailable("SIRET registry returned invalid JSON") from exc
            except (OSError, HTTPException) as exc:
                if _is_transient(exc) and attempt < self.max_attempts:
                    current_app.logger.warning(
                        "SIRET verification failed for %s (attempt %d), retrying: %s", siret, attempt, exc
                    )
                    time.sleep(self.retry_delay)
                    continue
                raise UpstreamUnavailable(f"SIRET registry unavailable: {exc!r}") from exc

        if not isinstance(data, dict):
            raise UpstreamUnavailable("SIRET registry returned an unexpected payload")
        results = data.get("results")
        if not isinstance(results, list) or not results:
            return None
        first = results[0]
        if not isinstance(first, dict):
            raise UpstreamUnavailable("SIRET registry returned an unexpected result")
        siege = first.get("siege")
        if not isinstance(siege, dict) or siege.get("siret") != siret:
            return None
        return _company_name(first)

    def verify(self, siret):
        try:
            company_name = self.lookup(siret)
        except UpstreamUnavailable as exc:
            current_app.logger.warning("SIRET verification failed for %s: %s", siret, exc)
            return {"valid": False}
        if company_name is None:
            return {"valid": False}
        return {"valid": True, "company_name": company_name}
