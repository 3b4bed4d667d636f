"""Payload encoding: exact bytes for both wire formats."""

import struct

import numpy as np
import pytest

from gpsync.core.errors import GPSDataError
from gpsync.encoder import PayloadEncoder, encode_binary, encode_text, stack_columns


def test_binary_is_native_float64_point_major():
    x = np.array([1.0, 2.0, 3.0])
    y = np.array([4.0, 5.0, 6.0])

    payload = encode_binary([x, y])

    assert len(payload) == 3 * 2 * 8
    assert payload == struct.pack("=6d", 1.0, 4.0, 2.0, 5.0, 3.0, 6.0)


def test_binary_has_no_terminator():
    payload = encode_binary([np.array([0.5])])
    assert payload == struct.pack("=d", 0.5)


def test_text_rows_then_end_marker():
    payload = encode_text([np.array([1, 2]), np.array([3, 4])])
    assert payload == b"1 3\n2 4\ne\n"


def test_text_keeps_full_precision():
    values = np.array([0.1, 1.0 / 3.0, -2.5e-300])
    payload = encode_text([values])

    lines = payload.decode("ascii").splitlines()
    assert lines[-1] == "e"
    assert [float(v) for v in lines[:-1]] == values.tolist()


def test_mismatched_columns_rejected():
    with pytest.raises(GPSDataError, match="mismatched"):
        stack_columns([np.arange(3), np.arange(4)])


def test_empty_tuple_rejected():
    with pytest.raises(GPSDataError):
        stack_columns([])


def test_encoder_writes_through_sink():
    sent = []
    encoder = PayloadEncoder(sent.append, binary=False)

    n = encoder.write_tuple([np.array([1.0]), np.array([2.0])])

    assert sent == [b"1 2\ne\n"]
    assert n == len(sent[0])


def test_encoder_binary_mode():
    sent = []
    encoder = PayloadEncoder(sent.append, binary=True)
    encoder.write_tuple([np.array([1.0, 2.0]), np.array([3.0, 4.0])])
    assert sent == [struct.pack("=4d", 1.0, 3.0, 2.0, 4.0)]
