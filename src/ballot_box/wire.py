"""Transport shapes: big integers travel as decimal strings.

The storage collaborator keeps keys and encrypted ballot papers as JSON, where
plain numbers would lose precision. These helpers convert between that shape
and the integer-valued dicts the engine works with.
"""

from typing import Any, Dict, Mapping

from .errors import MalformedVoteShape
from .group import GroupParameters, KeyPair, PrivateKey, PublicKey

ENCRYPTED_FIELDS = ("alpha", "beta", "commitment1", "commitment2", "challenge", "response")


def parse_int(data: Mapping[str, Any], key: str) -> int:
    """Read data[key] as a non-negative integer (int or decimal string)"""

    if not isinstance(data, Mapping):
        raise MalformedVoteShape(f"expected an object holding '{key}'")
    value = data.get(key)
    if isinstance(value, bool) or value is None:
        raise MalformedVoteShape(f"'{key}' must be an integer")
    if isinstance(value, str):
        if not (value.isascii() and value.isdigit()):
            raise MalformedVoteShape(f"'{key}' is not a decimal integer: {value!r}")
        return int(value)
    if isinstance(value, int) and value >= 0:
        return value
    raise MalformedVoteShape(f"'{key}' must be a non-negative integer")


def public_key_to_wire(pub: PublicKey) -> Dict[str, str]:
    group = pub.group
    return {
        "primeP": str(group.prime_p),
        "primeQ": str(group.prime_q),
        "generator": str(group.generator),
        "publicKey": str(pub.h),
    }


def public_key_from_wire(data: Mapping[str, Any]) -> PublicKey:
    group = GroupParameters(
        prime_p=parse_int(data, "primeP"),
        prime_q=parse_int(data, "primeQ"),
        generator=parse_int(data, "generator"),
    ).validate()
    return PublicKey(group=group, h=parse_int(data, "publicKey"))


def private_key_to_wire(priv: PrivateKey) -> Dict[str, str]:
    out = public_key_to_wire(priv.public_key)
    out["privateKey"] = str(priv.x)
    return out


def private_key_from_wire(data: Mapping[str, Any]) -> PrivateKey:
    """Rebuild and check the full key pair, return its private half"""

    return KeyPair.from_values(
        parse_int(data, "primeP"),
        parse_int(data, "primeQ"),
        parse_int(data, "generator"),
        parse_int(data, "publicKey"),
        parse_int(data, "privateKey"),
    ).private_key


def _convert_votes(votes, convert) -> list:
    return [
        {
            option: {name: convert(values, name) for name in ENCRYPTED_FIELDS}
            for option, values in vote.items()
        }
        for vote in votes
    ]


def encrypted_section_to_wire(section: Mapping[str, Any]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    if "sectionId" in section:
        out["sectionId"] = section["sectionId"]
    out["votes"] = _convert_votes(section["votes"], lambda values, name: str(values[name]))
    return out


def encrypted_section_from_wire(data: Mapping[str, Any]) -> Dict[str, Any]:
    votes = data.get("votes")
    if not isinstance(votes, list):
        raise MalformedVoteShape("section must contain a list of votes")
    if not all(isinstance(vote, dict) for vote in votes):
        raise MalformedVoteShape("every vote must be an object")
    out: Dict[str, Any] = {}
    if "sectionId" in data:
        out["sectionId"] = data["sectionId"]
    out["votes"] = _convert_votes(votes, parse_int)
    return out


def encrypted_ballot_paper_to_wire(ballot_paper: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        "ballotPaperId": ballot_paper["ballotPaperId"],
        "sections": {
            section_id: encrypted_section_to_wire(section)
            for section_id, section in ballot_paper["sections"].items()
        },
    }


def encrypted_ballot_paper_from_wire(data: Mapping[str, Any]) -> Dict[str, Any]:
    if "ballotPaperId" not in data or not isinstance(data.get("sections"), dict):
        raise MalformedVoteShape("ballot paper needs a ballotPaperId and a sections object")
    return {
        "ballotPaperId": data["ballotPaperId"],
        "sections": {
            section_id: encrypted_section_from_wire(section)
            for section_id, section in data["sections"].items()
        },
    }
