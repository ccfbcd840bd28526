"""Engine configuration and the per-election context.

Key material is never kept in module state: an `ElectionContext` is created
explicitly, handed to whoever needs it and closed when the election is done.
"""

import logging
import os
import threading
from dataclasses import dataclass, fields
from typing import Any, Dict, Mapping, Optional

from .decryption import SectionDecryption, build_lookup_table
from .encryption import BallotPaperEncryption
from .errors import ElectionNotFrozen
from .group import KeyPair, PublicKey, RandFunc, generate_key_pair

logger = logging.getLogger(__name__)

ENV_PREFIX = "BALLOT_BOX_"


@dataclass(frozen=True)
class EngineConfig:
    """Engine settings

    Attributes
    - key_bits: bit length of the safe prime p
    - log_level: level passed to configure_logging
    - server_url: base URL the CLI talks to
    """

    key_bits: int = 2048
    log_level: str = "INFO"
    server_url: str = "http://127.0.0.1:5000"

    def validate(self) -> "EngineConfig":
        if not isinstance(self.key_bits, int) or self.key_bits < 8:
            raise ValueError("key_bits must be an integer >= 8")
        if logging.getLevelName(self.log_level.upper()) == f"Level {self.log_level.upper()}":
            raise ValueError(f"unknown log level: {self.log_level}")
        if not self.server_url.startswith(("http://", "https://")):
            raise ValueError("server_url must be an http(s) URL")
        return self

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "EngineConfig":
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known}
        if "key_bits" in values:
            values["key_bits"] = int(values["key_bits"])
        return cls(**values).validate()

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "EngineConfig":
        """Read BALLOT_BOX_KEY_BITS, BALLOT_BOX_LOG_LEVEL, BALLOT_BOX_SERVER_URL"""

        environ = os.environ if environ is None else environ
        values: Dict[str, Any] = {}
        for f in fields(cls):
            raw = environ.get(ENV_PREFIX + f.name.upper())
            if raw is not None:
                values[f.name] = raw
        return cls.from_dict(values)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


class ElectionContext:
    """Key material and decryption state of one election

    freeze() generates the key pair once; close() forgets it again.
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        key_pair: Optional[KeyPair] = None,
        randfunc: Optional[RandFunc] = None,
    ):
        self.config = (config or EngineConfig()).validate()
        self.randfunc = randfunc
        self._key_pair = key_pair
        self._decryption: Optional[SectionDecryption] = None
        self._lock = threading.Lock()

    @property
    def is_frozen(self) -> bool:
        return self._key_pair is not None

    def freeze(self) -> PublicKey:
        """Generate the election key pair; ValueError if it already exists

        Concurrent callers block until the first one is done.
        """

        with self._lock:
            if self._key_pair is not None:
                raise ValueError("election keys already generated")
            logger.info("generating %d-bit election keys", self.config.key_bits)
            self._key_pair = generate_key_pair(self.config.key_bits, self.randfunc)
            return self._key_pair.public_key

    @property
    def key_pair(self) -> KeyPair:
        if self._key_pair is None:
            raise ElectionNotFrozen("election keys have not been generated")
        return self._key_pair

    @property
    def public_key(self) -> PublicKey:
        return self.key_pair.public_key

    def encryption(self) -> BallotPaperEncryption:
        return BallotPaperEncryption(self.public_key, self.randfunc)

    def decryption(self) -> SectionDecryption:
        key_pair = self.key_pair
        with self._lock:
            if self._decryption is None:
                self._decryption = SectionDecryption(key_pair.private_key)
            return self._decryption

    def close(self) -> None:
        with self._lock:
            self._key_pair = None
            self._decryption = None
        build_lookup_table.cache_clear()

    def __enter__(self) -> "ElectionContext":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
