"""Trader psych profile: self-assessment sections with consent tracking."""
import copy
import threading
from datetime import datetime
from typing import Any, Dict, Optional

from journal.core.errors import InvalidInput
from journal.models.snapshots import SnapshotRepository
from journal.utils.constants import SNAPSHOT_VERSION
from journal.utils.logging import get_logger

logger = get_logger(__name__)

SECTIONS = ('life', 'financial', 'wellbeing', 'personality', 'trading')


def initial_profile(now: Optional[datetime] = None) -> Dict[str, Any]:
    profile = {section: {} for section in SECTIONS}
    profile['consent'] = {
        'accepted': False,
        'last_updated': (now or datetime.utcnow()).isoformat(),
    }
    return profile


class ProfileStore:
    """
    Holds one profile; every write refreshes ``consent.last_updated``.
    Read-merge-commit runs under one reentrant lock.
    """

    def __init__(self, repository: Optional[SnapshotRepository] = None,
                 storage_key: str = "psych_profile_v1"):
        self.repository = repository
        self.storage_key = storage_key
        self._lock = threading.RLock()
        self._profile = initial_profile()
        if repository is not None:
            payload = repository.load(storage_key)
            if payload and payload.get('state', {}).get('profile'):
                self._profile = payload['state']['profile']

    @property
    def profile(self) -> Dict[str, Any]:
        return copy.deepcopy(self._profile)

    def set_profile(self, profile: Dict[str, Any], now: Optional[datetime] = None) -> Dict[str, Any]:
        """Replace the whole profile."""
        self._check_sections(profile)
        merged = initial_profile(now)
        for section in SECTIONS:
            merged[section] = dict(profile.get(section) or {})
        merged['consent'].update(profile.get('consent') or {})
        return self._commit(merged, now)

    def update(self, partial: Dict[str, Any], now: Optional[datetime] = None) -> Dict[str, Any]:
        """Shallow-merge each supplied section into the current profile."""
        self._check_sections(partial)
        with self._lock:
            merged = self.profile
            for section in SECTIONS:
                merged[section].update(partial.get(section) or {})
            merged['consent'].update(partial.get('consent') or {})
            return self._commit(merged, now)

    def reset(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        return self._commit(initial_profile(now), now)

    @staticmethod
    def _check_sections(data: Dict[str, Any]) -> None:
        unknown = set(data) - set(SECTIONS) - {'consent'}
        if unknown:
            raise InvalidInput(f"Unknown profile sections: {', '.join(sorted(unknown))}")

    def _commit(self, profile: Dict[str, Any], now: Optional[datetime]) -> Dict[str, Any]:
        profile['consent']['last_updated'] = (now or datetime.utcnow()).isoformat()
        with self._lock:
            if self.repository is not None:
                self.repository.save(self.storage_key, {
                    'state': {'profile': profile},
                    'version': SNAPSHOT_VERSION,
                }, SNAPSHOT_VERSION)
            self._profile = profile
        logger.info("Psych profile saved")
        return self.profile
