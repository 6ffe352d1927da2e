#!/usr/bin/env python3

# Copyright (C) The ecmultisig developers
#
# This file is part of ecmultisig. It is subject to the license terms in the
# LICENSE file found in the top-level directory of this distribution.
#
# No part of ecmultisig including this file, may be copied, modified, propagated,
# or distributed except according to the terms contained in the LICENSE file.

"""Signing session orchestration for the EC-Schnorr multisignature.

A Signer walks through the states

    NO_SECRET → SECRET_GENERATED → COMMIT_PUBLISHED
    → CHALLENGE_RECEIVED → RESPONSE_SENT

while the Aggregator walks through

    COLLECTING_COMMITS → COMMITS_AGGREGATED → CHALLENGE_COMPUTED
    → COLLECTING_RESPONSES → RESPONSES_VERIFIED → FINALIZED

Any transition attempted in the wrong state, or with missing
or uninitialized inputs, raises an Error and leaves the state untouched.

Signers are identified by their index in the public key sequence
the Aggregator is created with: such index-to-signer mapping is
stable across restarts with a reduced signer set.

Network transport, timeouts, and the decision whether an unreachable
quorum is fatal belong to the consuming consensus layer:
an absent commitment or response just excludes the signer.
"""

import copy
import logging
from dataclasses import dataclass, field
from enum import Enum
from hashlib import sha256
from typing import Dict, Iterable, List, Optional, Sequence, Union

from dataclasses_json import DataClassJsonMixin, config

from ecmultisig import multisig, schnorr
from ecmultisig.alias import HashF, Octets, Point
from ecmultisig.ec import CURVES, Curve, bytes_from_point, mult, secp256k1
from ecmultisig.exceptions import (
    MultiSigRuntimeError,
    MultiSigValueError,
    UninitializedError,
)
from ecmultisig.multisig import Challenge, CommitPoint, CommitSecret, Response
from ecmultisig.pop import gen_pop, verify_pop
from ecmultisig.to_prv_key import PrvKey, int_from_prv_key
from ecmultisig.to_pub_key import PubKey, point_from_pub_key
from ecmultisig.utils import bytes_from_octets

logger = logging.getLogger(__name__)

_HEX = config(encoder=lambda v: v.hex(), decoder=bytes.fromhex)


class SignerState(Enum):
    NO_SECRET = "no secret"
    SECRET_GENERATED = "secret generated"
    COMMIT_PUBLISHED = "commit published"
    CHALLENGE_RECEIVED = "challenge received"
    RESPONSE_SENT = "response sent"


class AggregatorState(Enum):
    COLLECTING_COMMITS = "collecting commits"
    COMMITS_AGGREGATED = "commits aggregated"
    CHALLENGE_COMPUTED = "challenge computed"
    COLLECTING_RESPONSES = "collecting responses"
    RESPONSES_VERIFIED = "responses verified"
    FINALIZED = "finalized"


class Signer:
    """A signer taking part in a single signing session.

    The commit secret is owned by the Signer:
    it is never exposed and it is cleared
    as soon as the response has been computed.
    """

    def __init__(
        self, prv_key: PrvKey, ec: Curve = secp256k1, hf: HashF = sha256
    ) -> None:
        self.ec = ec
        self.hf = hf
        self._q = int_from_prv_key(prv_key, ec)
        self.pub_key: Point = mult(self._q, ec.G, ec)
        self.state = SignerState.NO_SECRET
        self._secret: Optional[CommitSecret] = None
        self.commit_point: Optional[CommitPoint] = None
        self.challenge: Optional[Challenge] = None
        self.response: Optional[Response] = None

    def _require_state(self, *states: SignerState) -> None:
        if self.state not in states:
            raise MultiSigRuntimeError(f"invalid signer state: {self.state.value}")

    def _set_state(self, state: SignerState) -> None:
        pub_key = bytes_from_point(self.pub_key, self.ec).hex()
        logger.debug("signer %s: %s", pub_key, state.value)
        self.state = state

    def pop(self) -> schnorr.Sig:
        "Return the proof of possession to be provided at enrollment."
        return gen_pop(self._q, self.ec, self.hf)

    def generate_secret(self) -> None:
        self._require_state(SignerState.NO_SECRET)
        self._secret = CommitSecret(ec=self.ec)
        self._set_state(SignerState.SECRET_GENERATED)

    def commit(self) -> CommitPoint:
        "Return the commit point to be broadcast, drawing the secret if needed."
        if self.state is SignerState.NO_SECRET:
            self.generate_secret()
        self._require_state(SignerState.SECRET_GENERATED)
        self.commit_point = CommitPoint.from_secret(self._secret)  # type: ignore
        self._set_state(SignerState.COMMIT_PUBLISHED)
        return copy.copy(self.commit_point)

    def receive_challenge(
        self,
        challenge: Challenge,
        agg_commit: Optional[CommitPoint] = None,
        agg_pub_key: Optional[PubKey] = None,
        msg: Optional[Octets] = None,
    ) -> None:
        """Accept the challenge to respond to.

        If aggregated commit point, aggregated public key, and message
        are provided, the challenge is independently recomputed
        and rejected if it does not match.
        They must be provided all together or not at all.
        """
        self._require_state(SignerState.COMMIT_PUBLISHED)
        provided = [a is not None for a in (agg_commit, agg_pub_key, msg)]
        if any(provided) and not all(provided):
            err_msg = "agg_commit, agg_pub_key, and msg must be provided together"
            raise MultiSigValueError(err_msg)
        if challenge is None or not challenge.initialized:
            raise UninitializedError("uninitialized challenge")
        challenge.assert_valid()
        if challenge.ec != self.ec:
            raise MultiSigValueError("curve mismatch")
        if all(provided):
            expected = Challenge.from_aggregates(agg_commit, agg_pub_key, msg, self.hf)
            if expected != challenge:
                raise MultiSigValueError("challenge does not match the aggregates")
        self.challenge = copy.copy(challenge)
        self._set_state(SignerState.CHALLENGE_RECEIVED)

    def respond(self, challenge: Optional[Challenge] = None) -> Response:
        """Return the response to be broadcast.

        The commit secret is cleared: a signer responds only once.
        """
        if challenge is not None:
            self.receive_challenge(challenge)
        self._require_state(SignerState.CHALLENGE_RECEIVED)
        response = Response.from_secret(self._secret, self.challenge, self._q)  # type: ignore
        self._secret.clear()  # type: ignore
        self._secret = None
        self.response = response
        self._set_state(SignerState.RESPONSE_SENT)
        return copy.copy(response)


@dataclass
class Transcript(DataClassJsonMixin):
    """Record of a finalized signing session.

    Byte fields are hex-encoded in the JSON representation.
    """

    msg: bytes = field(metadata=_HEX)
    participants: List[int]
    agg_pub_key: bytes = field(metadata=_HEX)
    agg_commit: bytes = field(metadata=_HEX)
    challenge: bytes = field(metadata=_HEX)
    response: bytes = field(metadata=_HEX)
    curve: str = "secp256k1"

    def signature(self) -> schnorr.Sig:
        return schnorr.Sig.parse(self.challenge + self.response, CURVES[self.curve])

    def verify(self, hf: HashF = sha256) -> bool:
        "Verify the recorded multisignature against the recorded aggregated key."
        try:
            sig = self.signature()
        except (KeyError, MultiSigValueError):
            return False
        return schnorr.verify(self.msg, self.agg_pub_key, sig, hf)


class Aggregator:
    """Aggregator of a single signing session.

    If proofs of possession are provided,
    they are verified for every public key at enrollment.
    """

    def __init__(
        self,
        pub_keys: Sequence[PubKey],
        msg: Octets,
        participants: Optional[Iterable[int]] = None,
        pops: Optional[Sequence[Union[schnorr.Sig, Octets]]] = None,
        ec: Curve = secp256k1,
        hf: HashF = sha256,
    ) -> None:
        if not pub_keys:
            raise MultiSigValueError("no public keys provided")
        self.ec = ec
        self.hf = hf
        self.pub_keys: List[Point] = [point_from_pub_key(Q, ec) for Q in pub_keys]
        if pops is not None:
            if len(pops) != len(self.pub_keys):
                err_msg = f"mismatch between number of pub_keys ({len(self.pub_keys)})"
                raise MultiSigValueError(f"{err_msg} and number of pops ({len(pops)})")
            for i, (Q, pop) in enumerate(zip(self.pub_keys, pops)):
                if not verify_pop(Q, pop, ec, hf):
                    raise MultiSigValueError(f"invalid proof of possession: signer #{i}")
        self.msg = bytes_from_octets(msg)

        if participants is None:
            participants = range(len(self.pub_keys))
        self.participants = sorted(set(participants))
        if not self.participants:
            raise MultiSigValueError("no participants")
        for i in self.participants:
            if not 0 <= i < len(self.pub_keys):
                raise MultiSigValueError(f"invalid signer index: {i}")

        self.commits: Dict[int, CommitPoint] = {}
        self.responses: Dict[int, Response] = {}
        self.agg_pub_key: Optional[Point] = None
        self.agg_commit: Optional[CommitPoint] = None
        self.challenge: Optional[Challenge] = None
        self.excluded: List[int] = []
        self.signature: Optional[schnorr.Sig] = None
        self.state = AggregatorState.COLLECTING_COMMITS

    def _require_state(self, *states: AggregatorState) -> None:
        if self.state not in states:
            raise MultiSigRuntimeError(f"invalid aggregator state: {self.state.value}")

    def _set_state(self, state: AggregatorState) -> None:
        logger.debug("aggregator: %s", state.value)
        self.state = state

    def _require_participant(self, i: int) -> None:
        if i not in self.participants:
            raise MultiSigValueError(f"not a participant: {i}")

    def add_commit(self, i: int, commit_point: CommitPoint) -> None:
        self._require_state(AggregatorState.COLLECTING_COMMITS)
        self._require_participant(i)
        if commit_point is None or not commit_point.initialized:
            raise UninitializedError(f"uninitialized commit point: signer #{i}")
        if commit_point.ec != self.ec:
            raise MultiSigValueError(f"curve mismatch: signer #{i}")
        commit_point.assert_valid()
        if i in self.commits:
            raise MultiSigValueError(f"duplicate commit point: signer #{i}")
        self.commits[i] = copy.copy(commit_point)

    def aggregate(self) -> CommitPoint:
        """Aggregate public keys and commit points of the committed signers.

        Participants that did not commit are excluded from the session.
        """
        self._require_state(AggregatorState.COLLECTING_COMMITS)
        committed = [i for i in self.participants if i in self.commits]
        if not committed:
            raise MultiSigRuntimeError("no commit points received")
        agg_pub_key = multisig.aggregate_pub_keys(
            [self.pub_keys[i] for i in committed], self.ec
        )
        agg_commit = multisig.aggregate_commits([self.commits[i] for i in committed])

        absent = [i for i in self.participants if i not in self.commits]
        if absent:
            logger.warning("signers excluded for missing commit point: %s", absent)
        self.participants = committed
        self.agg_pub_key = agg_pub_key
        self.agg_commit = agg_commit
        self._set_state(AggregatorState.COMMITS_AGGREGATED)
        return copy.copy(agg_commit)

    def compute_challenge(self) -> Challenge:
        self._require_state(AggregatorState.COMMITS_AGGREGATED)
        challenge = Challenge.from_aggregates(
            self.agg_commit, self.agg_pub_key, self.msg, self.hf  # type: ignore
        )
        self.challenge = challenge
        self._set_state(AggregatorState.CHALLENGE_COMPUTED)
        return copy.copy(challenge)

    def add_response(self, i: int, response: Response) -> None:
        self._require_state(
            AggregatorState.CHALLENGE_COMPUTED, AggregatorState.COLLECTING_RESPONSES
        )
        self._require_participant(i)
        if response is None or not response.initialized:
            raise UninitializedError(f"uninitialized response: signer #{i}")
        if response.ec != self.ec:
            raise MultiSigValueError(f"curve mismatch: signer #{i}")
        if i in self.responses:
            raise MultiSigValueError(f"duplicate response: signer #{i}")
        self.responses[i] = copy.copy(response)
        if self.state is AggregatorState.CHALLENGE_COMPUTED:
            self._set_state(AggregatorState.COLLECTING_RESPONSES)

    def verify_responses(self) -> List[int]:
        """Verify every response on its own.

        Return the indices of the signers whose response
        is missing or invalid: if any, the session cannot be finalized
        and it must be restarted without them.
        """
        self._require_state(
            AggregatorState.CHALLENGE_COMPUTED, AggregatorState.COLLECTING_RESPONSES
        )
        missing: List[int] = []
        invalid: List[int] = []
        for i in self.participants:
            response = self.responses.get(i)
            if response is None:
                missing.append(i)
            elif not multisig.verify_response(
                response, self.challenge, self.pub_keys[i], self.commits[i]  # type: ignore
            ):
                invalid.append(i)

        if missing:
            logger.warning("signers excluded for missing response: %s", missing)
        if invalid:
            logger.warning("signers excluded for invalid response: %s", invalid)
        self.excluded = sorted(missing + invalid)
        if not self.excluded:
            self._set_state(AggregatorState.RESPONSES_VERIFIED)
        return list(self.excluded)

    def finalize(self) -> schnorr.Sig:
        "Return the multisignature (challenge, aggregated response)."
        self._require_state(AggregatorState.RESPONSES_VERIFIED)
        agg_response = multisig.aggregate_responses(
            [self.responses[i] for i in self.participants]
        )
        sig = multisig.aggregate_sign(self.challenge, agg_response)  # type: ignore
        if not schnorr.verify(self.msg, self.agg_pub_key, sig, self.hf):  # type: ignore
            raise MultiSigRuntimeError("aggregated signature verification failed")
        self.signature = sig
        self._set_state(AggregatorState.FINALIZED)
        return sig

    def transcript(self) -> Transcript:
        self._require_state(AggregatorState.FINALIZED)
        sig_bytes = self.signature.serialize()  # type: ignore
        return Transcript(
            msg=self.msg,
            participants=list(self.participants),
            agg_pub_key=bytes_from_point(self.agg_pub_key, self.ec),  # type: ignore
            agg_commit=self.agg_commit.serialize(),  # type: ignore
            challenge=sig_bytes[: self.ec.n_size],
            response=sig_bytes[self.ec.n_size :],
            curve=self.ec.name or "",
        )

    def restart_without(self, excluded: Iterable[int]) -> "Aggregator":
        """Return a new Aggregator for the reduced signer set.

        The challenge depends on all commit points:
        the remaining signers must commit again with fresh secrets.
        """
        excluded = set(excluded)
        remaining = [i for i in self.participants if i not in excluded]
        if not remaining:
            raise MultiSigValueError("no participants left")
        logger.info("session restarted without signers: %s", sorted(excluded))
        # proofs of possession have already been verified
        return Aggregator(self.pub_keys, self.msg, remaining, None, self.ec, self.hf)
