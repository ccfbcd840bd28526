"""Minimal Flask API around one election context.

Endpoints:
- POST /keys -> generate the election key pair, returns the public key
- GET /keys/public -> public key (primeP, primeQ, generator, publicKey)
- POST /sections/<section_id>/encrypt -> encrypt a plaintext section {"votes": [...]}
- POST /ballot-papers/encrypt -> encrypt a whole plaintext ballot paper
- POST /sections/<section_id>/decrypt -> verify and tally an encrypted section

Big integers are exchanged as decimal strings.
"""

from typing import Optional

from flask import Flask, jsonify, request

from . import wire
from .config import ElectionContext, EngineConfig, configure_logging
from .errors import (
    ElectionNotFrozen,
    InconsistentSectionShape,
    LookupMiss,
    MalformedVoteShape,
    ProofVerificationFailure,
)


def create_app(
    config: Optional[EngineConfig] = None, context: Optional[ElectionContext] = None
) -> Flask:
    app = Flask(__name__)
    ctx = context or ElectionContext(config)
    app.config["ELECTION"] = ctx

    @app.errorhandler(ElectionNotFrozen)
    def _not_frozen(e):
        return jsonify({"error": str(e)}), 409

    @app.errorhandler(MalformedVoteShape)
    @app.errorhandler(InconsistentSectionShape)
    def _bad_shape(e):
        body = {"error": str(e)}
        if isinstance(e, InconsistentSectionShape):
            body.update({"voteIndex": e.vote_index, "kind": e.kind})
        return jsonify(body), 400

    @app.errorhandler(ProofVerificationFailure)
    def _bad_proof(e):
        return jsonify({"error": str(e), "voteIndex": e.vote_index}), 422

    @app.errorhandler(LookupMiss)
    def _lookup_miss(e):
        return jsonify({"error": "failed to decrypt", "detail": str(e)}), 500

    @app.route("/keys", methods=["POST"])
    def create_keys():
        """Generate the election keys once.

        Servers started through `python -m ballot_box.server` already hold keys.
        """
        try:
            pub = ctx.freeze()
        except ValueError:
            return jsonify({"error": "already initialized"}), 400
        return jsonify(wire.public_key_to_wire(pub)), 201

    @app.route("/keys/public", methods=["GET"])
    def public_key():
        return jsonify(wire.public_key_to_wire(ctx.public_key))

    @app.route("/sections/<section_id>/encrypt", methods=["POST"])
    def encrypt_section(section_id: str):
        """Encrypt a plaintext section: expects {"votes": [{option: 0|1, ...}, ...]}."""
        data = request.get_json(silent=True)
        if not isinstance(data, dict) or not isinstance(data.get("votes"), list):
            return jsonify({"error": "section must be a JSON object with a votes list"}), 400
        encrypted = ctx.encryption().encrypt_section(data, section_id)
        return jsonify(wire.encrypted_section_to_wire(encrypted))

    @app.route("/ballot-papers/encrypt", methods=["POST"])
    def encrypt_ballot_paper():
        data = request.get_json(silent=True)
        if (
            not isinstance(data, dict)
            or not isinstance(data.get("ballotPaperId"), str)
            or not isinstance(data.get("sections"), dict)
        ):
            return jsonify({"error": "missing or invalid fields"}), 400
        encrypted = ctx.encryption().encrypt_ballot_paper(data)
        return jsonify(wire.encrypted_ballot_paper_to_wire(encrypted))

    @app.route("/sections/<section_id>/decrypt", methods=["POST"])
    def decrypt_section(section_id: str):
        """Tally an encrypted section.

        Expects {"votes": [...]} and an optional "withProofs" flag.
        """
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({"error": "section must be a JSON object"}), 400
        section = wire.encrypted_section_from_wire(data)
        decryption = ctx.decryption()
        decryption.calculate_lookup_table(len(section["votes"]))
        result = decryption.decrypt_section(
            section, section_id, with_proofs=bool(data.get("withProofs"))
        )
        return jsonify(result.to_dict())

    return app


if __name__ == "__main__":
    cfg = EngineConfig.from_env()
    configure_logging(cfg.log_level)
    election = ElectionContext(cfg)
    # key generation happens before the first request is served
    election.freeze()
    create_app(context=election).run(debug=True, use_reloader=False)
