#!/usr/bin/env python3

# Copyright (C) The ecmultisig developers
#
# This file is part of ecmultisig. It is subject to the license terms in the
# LICENSE file found in the top-level directory of this distribution.
#
# No part of ecmultisig including this file, may be copied, modified, propagated,
# or distributed except according to the terms contained in the LICENSE file.

"""Aliases.

mypy aliases, documenting also coding input conventions.
"""

from io import BytesIO
from typing import Any, Callable, Tuple, Union

# Octets are a sequence of eight-bit bytes or a hex-string (not text string)
#
# hex-strings are strings that can be converted to bytes using bytes.fromhex,
# e.g.:
# "deadbeef"
# "dead beef"
# "02 cc71eb30d653c0c3163990c47b976f3fb3f37cccdcbedb169a1dfef58bbfbfaf"
#
# use ecmultisig.utils.bytes_from_octets to convert Octets to bytes
#
# Octets are used for messages to be signed, serialized scalars
# (commit secrets, challenges, responses), SEC encoded points,
# and schnorr.Sig serializations
Octets = Union[bytes, str]

# binary data, usually to be consumed as byte stream,
# but possibly provided as Octets too
BinaryData = Union[BytesIO, Octets]

# hex-string or bytes representation of an int
Integer = Union[bytes, str, int]

# Hash digest constructor: it may be any name suitable to hashlib.new()
HashF = Callable[[], Any]

# Elliptic curve point in affine coordinates.
# Warning: to make Point a NamedTuple would slow down the code
Point = Tuple[int, int]

# Note that the infinity point in affine coordinates is INF = (int, 0)
# (no affine point has y=0 coordinate in a group of prime order).
# It can be checked with 'INF[1] == 0'
# The x-coordinate is arbitrary: 5 is preferred
# because it is not a valid x-coordinate in secp256k1
INF = 5, 0

# Elliptic curve point in Jacobian coordinates.
JacPoint = Tuple[int, int, int]

# Infinity point in Jacobian coordinates is INF = (int, int, 0).
# It can be checked with 'INF[2] == 0'
INFJ = 7, 0, 0
