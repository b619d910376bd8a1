import random

import pytest

from shared.protocol import (
    AssemblyStage,
    ErrorCode,
    FrameAssembler,
    Message,
    MsgType,
    NotFoundError,
    ProtocolError,
    StatusCode,
    StorePayload,
    decode_frame,
    encode_frame,
    encode_message,
    error_response,
    store_request,
    validate_request,
)


def _feed_all(chunks, max_payload_size=1024):
    assembler = FrameAssembler(max_payload_size)
    out = []
    for chunk in chunks:
        out.extend(assembler.feed(chunk))
    return out, assembler


def test_encode_layout_matches_reference_request():
    frame = encode_frame(MsgType.DATA_REQUEST, b"img1")
    assert frame == b"\x01\x00\x00\x00\x04img1"
    assert len(frame) == 5 + 4


def test_encode_decode_roundtrip_including_empty_payload():
    for payload in (b"", b"x", bytes(range(256)) * 3):
        decoded = decode_frame(encode_frame(MsgType.DATA_RESPONSE, payload))
        assert decoded == Message(type=MsgType.DATA_RESPONSE, payload=payload)


def test_encode_accepts_any_type_byte_and_rejects_oversize():
    assert encode_frame(99, b"") == b"\x63\x00\x00\x00\x00"
    with pytest.raises(ProtocolError) as out_of_range:
        encode_frame(256, b"")
    assert out_of_range.value.code == ErrorCode.UNKNOWN_TYPE
    with pytest.raises(ProtocolError) as too_big:
        encode_frame(MsgType.DATA_RESPONSE, b"x" * 11, max_payload_size=10)
    assert too_big.value.status == StatusCode.PAYLOAD_TOO_LARGE


def test_decode_frame_rejects_truncated_and_trailing_bytes():
    frame = encode_frame(MsgType.DATA_REQUEST, b"img1")
    with pytest.raises(ProtocolError):
        decode_frame(frame[:-1])
    with pytest.raises(ProtocolError):
        decode_frame(frame + b"\x01")
    with pytest.raises(ProtocolError) as short:
        decode_frame(frame[:3])
    assert short.value.code == ErrorCode.MALFORMED_PAYLOAD


def test_single_byte_feeding_matches_whole_buffer():
    frame = encode_frame(MsgType.DATA_RESPONSE, b"ciphertext-bytes")
    whole, _ = _feed_all([frame])
    bytewise, assembler = _feed_all([frame[i : i + 1] for i in range(len(frame))])
    assert bytewise == whole == [Message(type=MsgType.DATA_RESPONSE, payload=b"ciphertext-bytes")]
    assert assembler.is_idle


def test_every_two_way_split_parses_identically():
    frame = encode_frame(MsgType.STORE_REQUEST, StorePayload(image_id="a", data=b"\x00\xff" * 4).to_bytes())
    expected, _ = _feed_all([frame])
    for cut in range(len(frame) + 1):
        got, _ = _feed_all([frame[:cut], frame[cut:]])
        assert got == expected


def test_random_chunking_of_pipelined_stream():
    rng = random.Random(1234)
    sources = [
        (MsgType.DATA_REQUEST, b"img1"),
        (MsgType.DATA_RESPONSE, b""),
        (MsgType.DATA_RESPONSE, bytes(rng.randrange(256) for _ in range(300))),
        (MsgType.ACKNOWLEDGE, b"img1"),
    ]
    stream = b"".join(encode_frame(t, p) for t, p in sources)
    expected = [Message(type=t, payload=p) for t, p in sources]
    for _ in range(50):
        chunks, pos = [], 0
        while pos < len(stream):
            size = rng.randint(1, 17)
            chunks.append(stream[pos : pos + size])
            pos += size
        got, assembler = _feed_all(chunks)
        assert got == expected
        assert assembler.is_idle


def test_two_frames_in_one_chunk_yield_two_messages_in_order():
    first = encode_frame(MsgType.DATA_REQUEST, b"img1")
    second = encode_frame(MsgType.DATA_REQUEST, b"img2")
    messages = FrameAssembler().feed(first + second)
    assert [m.payload for m in messages] == [b"img1", b"img2"]


def test_stage_advances_and_leftover_carries_forward():
    assembler = FrameAssembler()
    frame = encode_frame(MsgType.DATA_REQUEST, b"abc")
    assert assembler.feed(b"") == []
    assert assembler.stage is AssemblyStage.AWAITING_TYPE
    assembler.feed(frame[:1])
    assert assembler.stage is AssemblyStage.AWAITING_LENGTH
    assembler.feed(frame[1:5])
    assert assembler.stage is AssemblyStage.AWAITING_PAYLOAD
    messages = assembler.feed(frame[5:] + frame[:3])
    assert len(messages) == 1
    assert assembler.stage is AssemblyStage.AWAITING_LENGTH
    assert assembler.pending_bytes == 2


def test_unknown_type_fails_and_stays_failed():
    assembler = FrameAssembler()
    with pytest.raises(ProtocolError) as exc:
        assembler.feed(b"\x63\x00\x00\x00\x00")
    assert exc.value.code == ErrorCode.UNKNOWN_TYPE
    assert assembler.failed
    with pytest.raises(ProtocolError):
        assembler.feed(encode_frame(MsgType.DATA_REQUEST, b"img1"))


def test_valid_frame_before_garbage_is_returned_then_error_raised():
    assembler = FrameAssembler()
    messages = assembler.feed(encode_frame(MsgType.DATA_REQUEST, b"img1") + b"\x63")
    assert [m.payload for m in messages] == [b"img1"]
    with pytest.raises(ProtocolError):
        assembler.feed(b"")


def test_oversized_length_rejected_before_payload_arrives():
    assembler = FrameAssembler(max_payload_size=8)
    with pytest.raises(ProtocolError) as exc:
        assembler.feed(b"\x02\x00\x00\x00\x09")
    assert exc.value.status == StatusCode.PAYLOAD_TOO_LARGE
    assert exc.value.code == ErrorCode.FRAME_TOO_LARGE


def test_large_payload_spanning_compaction_threshold():
    payload = bytes(range(256)) * 1024  # 256 KiB
    frame = encode_frame(MsgType.DATA_RESPONSE, payload) * 2
    chunks = [frame[i : i + 7000] for i in range(0, len(frame), 7000)]
    got, assembler = _feed_all(chunks, max_payload_size=len(payload))
    assert [m.payload for m in got] == [payload, payload]
    assert assembler.is_idle


def test_message_is_immutable():
    message = Message(type=MsgType.DATA_REQUEST, payload=b"img1")
    with pytest.raises(Exception):
        message.payload = b"other"


def test_store_payload_layout_and_truncation():
    message = store_request("img1", b"\x01\x02")
    assert message.payload == b"\x00\x00\x00\x04img1\x01\x02"
    assert StorePayload.from_bytes(message.payload) == StorePayload(image_id="img1", data=b"\x01\x02")
    with pytest.raises(ProtocolError) as exc:
        StorePayload.from_bytes(b"\x00\x00\x00\x09img1")
    assert exc.value.code == ErrorCode.MALFORMED_PAYLOAD


def test_store_header_is_read_without_touching_the_blob():
    message = store_request("img1", b"\xff" * 64)
    assert StorePayload.read_header(message.payload) == ("img1", 8)
    validate_request(message)
    with pytest.raises(ProtocolError) as empty_id:
        validate_request(Message(type=MsgType.STORE_REQUEST, payload=b"\x00\x00\x00\x00blob"))
    assert empty_id.value.code == ErrorCode.MALFORMED_PAYLOAD
    with pytest.raises(ProtocolError):
        validate_request(Message(type=MsgType.STORE_REQUEST, payload=b"\x00\x00\x00\x09img1"))


def test_error_response_text_roundtrips_to_typed_error():
    message = error_response(NotFoundError(message="Image 'img1' not found"))
    assert message.type == MsgType.ERROR_RESPONSE
    assert message.payload == b"404 IMAGE_NOT_FOUND: Image 'img1' not found"
    decoded = ProtocolError.from_payload(message.payload)
    assert isinstance(decoded, NotFoundError)
    assert decoded.message == "Image 'img1' not found"

    garbled = ProtocolError.from_payload(b"something went wrong")
    assert garbled.status == StatusCode.INTERNAL_ERROR
    assert garbled.message == "something went wrong"


def test_encode_message_matches_encode_frame():
    message = Message(type=MsgType.ACKNOWLEDGE, payload=b"img1")
    assert encode_message(message) == encode_frame(MsgType.ACKNOWLEDGE, b"img1")
