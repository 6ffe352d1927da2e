#!/usr/bin/env python3

# Copyright (C) The ecmultisig developers
#
# This file is part of ecmultisig. It is subject to the license terms in the
# LICENSE file found in the top-level directory of this distribution.
#
# No part of ecmultisig including this file, may be copied, modified, propagated,
# or distributed except according to the terms contained in the LICENSE file.

"""Module ecmultisig.ec."""

from ecmultisig.ec.curve import (
    CURVES,
    Curve,
    CurveSubGroup,
    double_mult,
    mult,
    multi_mult,
    secp256k1,
)
from ecmultisig.ec.curve_group import CurveGroup, jac_from_aff
from ecmultisig.ec.sec_point import bytes_from_point, point_from_octets, point_size

__all__ = [
    "CURVES",
    "Curve",
    "CurveGroup",
    "CurveSubGroup",
    "double_mult",
    "mult",
    "multi_mult",
    "secp256k1",
    "jac_from_aff",
    "bytes_from_point",
    "point_from_octets",
    "point_size",
]
