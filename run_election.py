"""Run a small simulated election in-process.

Generates election keys, encrypts a few ballot papers, tallies every section
homomorphically and runs the ballot-level plausibility checks.

Run this script from the repository root (after `pip install -e .`).
"""

import argparse
import hashlib
import uuid

from ballot_box import ElectionContext, EngineConfig, configure_logging
from ballot_box.tally import aggregate_results, check_candidate_limits, check_invalid_votes


def _print_heading(msg: str):
    print()
    print(msg)


def _print_kv(key: str, value):
    print(f"  {key}: {value}")


def _vote(candidates, choice):
    vote = {cid: 0 for cid in candidates}
    vote.update({"noVote": 0, "invalid": 0})
    vote[choice] = 1
    return vote


def main():
    p = argparse.ArgumentParser()
    p.add_argument("--bits", type=int, default=256, help="safe prime size")
    p.add_argument("--log-level", default="WARNING")
    args = p.parse_args()
    configure_logging(args.log_level)

    alice, bob, carol = (str(uuid.uuid4()) for _ in range(3))
    names = {alice: "Alice", bob: "Bob", carol: "Carol"}
    mayor, council = str(uuid.uuid4()), str(uuid.uuid4())

    with ElectionContext(EngineConfig(key_bits=args.bits, log_level=args.log_level)) as ctx:
        _print_heading(f"[Step 1] Key generation ({args.bits} bits)")
        pub = ctx.freeze()
        _print_kv("p", hashlib.sha256(str(pub.group.prime_p).encode()).hexdigest()[:8])
        _print_kv("public key", hashlib.sha256(str(pub.h).encode()).hexdigest()[:8])

        _print_heading("[Step 2] Encrypting ballot papers")
        # one ballot paper per voter, two sections each
        choices = [
            (alice, bob),
            (bob, bob),
            (alice, carol),
            ("noVote", bob),
        ]
        encryption = ctx.encryption()
        encrypted_papers = []
        for mayor_choice, council_choice in choices:
            paper = {
                "ballotPaperId": str(uuid.uuid4()),
                "sections": {
                    mayor: {"votes": [_vote(names, mayor_choice)]},
                    council: {"votes": [_vote(names, council_choice)]},
                },
            }
            encrypted_papers.append(encryption.encrypt_ballot_paper(paper))
            _print_kv("encrypted", paper["ballotPaperId"][:8] + "..")

        _print_heading("[Step 3] Homomorphic tally per section")
        decryption = ctx.decryption()
        decryption.calculate_lookup_table(len(encrypted_papers))
        results = []
        for section_id, label in ((mayor, "mayor"), (council, "council")):
            section = {
                "votes": [
                    vote
                    for paper in encrypted_papers
                    for vote in paper["sections"][section_id]["votes"]
                ]
            }
            result = decryption.decrypt_section(section, section_id)
            results.append(result)
            print(f"  {label}:")
            for cid, count in result.candidate_results.items():
                _print_kv(f"  {names[cid]}", count)
            _print_kv("  noVote", result.no_vote_count)
            _print_kv("  invalid", result.invalid_count)
            ok = check_invalid_votes(result, len(section["votes"])) and check_candidate_limits(
                result, len(section["votes"])
            )
            _print_kv("  plausible", "OK" if ok else "FAIL")

        _print_heading("[Step 4] Totals across sections")
        tally = aggregate_results(results)
        for cid, count in sorted(tally.total_votes_per_candidate.items(), key=lambda kv: names[kv[0]]):
            _print_kv(names[cid], count)
        _print_kv("invalid", tally.total_invalid_count)


if __name__ == "__main__":
    main()
