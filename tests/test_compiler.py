import struct

import numpy as np
import pytest

from sfbuilder import Instrument, SampleDescriptor, SoundFontCompiler, SoundFontParser, create_sf2
from sfbuilder.compiler import write_generator
from sfbuilder.constants import GENERATOR_IDS, GUARD_FRAMES, SAMPLE_TYPE_LEFT, SAMPLE_TYPE_RIGHT
from sfbuilder.riff import ChunkWriter
from sfbuilder.samples import float_to_pcm16

KEY_RANGE = GENERATOR_IDS["keyRange"]
SAMPLE_ID = GENERATOR_IDS["sampleID"]
SAMPLE_MODES = GENERATOR_IDS["sampleModes"]

_TERMINAL_MODULATOR = {"src_oper": 0, "dest_oper": 0, "amount": 0, "amt_src_oper": 0, "trans_oper": 0}


def _key_range(zone):
    gen = zone[0]
    assert gen["oper"] == KEY_RANGE
    return gen["amount"] & 0xFF, (gen["amount"] >> 8) & 0xFF


def _opers(zone):
    return [g["oper"] for g in zone]


def test_empty_input_is_a_valid_file():
    data = create_sf2({})
    parser = SoundFontParser(data)

    assert data[:4] == b"RIFF"
    assert data[8:12] == b"sfbk"
    assert len(data) > 44
    assert len(data) == 552
    assert parser.riff_size == len(data) - 8
    assert parser.list_order == ["INFO", "sdta", "pdta"]
    assert parser.pdta_order == ["phdr", "pbag", "pmod", "pgen", "inst", "ibag", "imod", "igen", "shdr"]

    samples = parser.get_sample_headers()
    assert [s["name"] for s in samples] == ["Empty", "EOS"]
    assert samples[0]["start"] == 0
    assert samples[0]["end"] == 4
    assert (samples[0]["start_loop"], samples[0]["end_loop"]) == (3, 4)

    zones = parser.get_instrument_zones(0)
    assert len(zones) == 1
    assert _key_range(zones[0]) == (0, 127)


def test_info_list():
    parser = SoundFontParser(create_sf2({}))

    assert parser.info_order == ["ifil", "isng", "INAM"]
    assert parser.info_data == {
        "version": "2.01",
        "sound_engine": "EMU8000",
        "bank_name": "Untitled SoundFont",
    }


def test_info_list_with_author():
    parser = SoundFontParser(create_sf2({"name": "Banjo", "author": "AutoGenerated"}))

    assert parser.info_order == ["ifil", "isng", "INAM", "IENG"]
    assert parser.info_data["bank_name"] == "Banjo"
    assert parser.info_data["engineer"] == "AutoGenerated"


@pytest.mark.parametrize("instrument", [
    {},
    {"name": "odd"},
    {"name": "Strings", "author": "me", "samples": [{"name": "a", "data": [0.25] * 333}]},
    {"is_drum_kit": True, "samples": [{"name": "kick", "data": [0.1] * 7, "channels": 1}]},
    {"samples": [{"name": "st", "data": [0.1, -0.1] * 51, "channels": 2}]},
])
def test_riff_size_matches_file_length(instrument):
    data = create_sf2(instrument)

    assert struct.unpack("<I", data[4:8])[0] == len(data) - 8
    assert len(data) % 2 == 0


def test_single_mono_sample(sine):
    pcm = sine(1000)
    data = create_sf2({"name": "One", "samples": [{"name": "sine", "data": pcm, "root_note": 69}]})
    parser = SoundFontParser(data)

    zones = parser.get_instrument_zones(0)
    assert len(zones) == 1
    assert _opers(zones[0]) == [KEY_RANGE, SAMPLE_ID]
    assert _key_range(zones[0]) == (0, 127)
    assert zones[0][-1]["amount"] == 0

    header = parser.get_sample_headers()[0]
    assert header["name"] == "sine"
    assert (header["start"], header["end"]) == (0, 1000)
    assert (header["start_loop"], header["end_loop"]) == (999, 1000)
    assert header["original_key"] == 69
    assert header["correction"] == 0
    assert header["sample_type"] == 1

    assert len(parser.sample_data) == (1000 + GUARD_FRAMES) * 2
    assert list(parser.get_sample_pcm(0)) == float_to_pcm16(pcm).tolist()


def test_guard_frames_follow_every_sample():
    data = create_sf2({"samples": [
        {"name": "a", "data": [1.0] * 10, "root_note": 40},
        {"name": "b", "data": [-1.0] * 20, "root_note": 80},
    ]})
    parser = SoundFontParser(data)

    frames = struct.unpack(f"<{len(parser.sample_data) // 2}h", parser.sample_data)
    assert frames == (32767,) * 10 + (0,) * GUARD_FRAMES + (-32768,) * 20 + (0,) * GUARD_FRAMES

    a, b, eos = parser.get_sample_headers()
    assert (a["start"], a["end"]) == (0, 10)
    assert (b["start"], b["end"]) == (10 + GUARD_FRAMES, 30 + GUARD_FRAMES)
    assert eos["name"] == "EOS"
    assert eos["raw_name"] == b"EOS" + b"\x00" * 17
    assert (eos["start"], eos["end"], eos["sample_rate"], eos["sample_type"]) == (0, 0, 0, 0)


def test_two_samples_split_keyboard():
    data = create_sf2({"samples": [
        {"name": "low", "data": [0.0] * 100, "root_note": 40},
        {"name": "high", "data": [0.0] * 100, "root_note": 70},
    ]})
    zones = SoundFontParser(data).get_instrument_zones(0)

    assert [_key_range(z) for z in zones] == [(0, 55), (56, 127)]
    assert [z[-1]["amount"] for z in zones] == [0, 1]


def test_loop_offsets_are_absolute():
    data = create_sf2({"samples": [
        {"name": "first", "data": [0.0] * 500, "root_note": 40},
        {"name": "looped", "data": [0.8] * 10000, "root_note": 80, "sample_rate": 48000,
         "loop_start": 100, "loop_end": 9900},
    ]})
    parser = SoundFontParser(data)

    header = parser.get_sample_headers()[1]
    offset = 500 + GUARD_FRAMES
    assert header["start"] == offset
    assert header["end"] == offset + 10000
    assert header["start_loop"] == offset + 100
    assert header["end_loop"] == offset + 9900
    assert header["sample_rate"] == 48000

    zones = parser.get_instrument_zones(0)
    assert _opers(zones[0]) == [KEY_RANGE, SAMPLE_ID]
    assert _opers(zones[1]) == [KEY_RANGE, SAMPLE_MODES, SAMPLE_ID]
    assert zones[1][1]["amount"] == 1


def test_invalid_loop_falls_back_to_no_loop():
    data = create_sf2({"samples": [
        {"name": "bad", "data": [0.0] * 100, "loop_start": 90, "loop_end": 20},
    ]})
    parser = SoundFontParser(data)

    header = parser.get_sample_headers()[0]
    assert (header["start_loop"], header["end_loop"]) == (99, 100)
    assert SAMPLE_MODES not in _opers(parser.get_instrument_zones(0)[0])


def test_preset_and_instrument_records():
    parser = SoundFontParser(create_sf2({"name": "Banjo", "samples": [{"name": "a", "data": [0.0] * 4}]}))

    presets = parser.get_preset_headers()
    assert [(p["name"], p["preset"], p["bank"], p["bag_ndx"]) for p in presets] == [
        ("Banjo", 0, 0, 0),
        ("EOP", 0, 0, 1),
    ]
    assert parser.get_preset_bags() == [{"gen_ndx": 0, "mod_ndx": 0}, {"gen_ndx": 1, "mod_ndx": 0}]
    assert parser.get_preset_generators() == [
        {"oper": GENERATOR_IDS["instrument"], "amount": 0},
        {"oper": 0, "amount": 0},
    ]
    assert parser.pdta["pmod"] == b"\x00" * 10
    assert parser.pdta["imod"] == b"\x00" * 10
    assert parser.get_preset_modulators() == [_TERMINAL_MODULATOR]
    assert parser.get_instrument_modulators() == [_TERMINAL_MODULATOR]

    instruments = parser.get_instrument_headers()
    assert instruments == [{"name": "Banjo", "bag_ndx": 0}, {"name": "EOI", "bag_ndx": 1}]


def test_default_preset_and_instrument_names():
    parser = SoundFontParser(create_sf2({}))

    assert parser.get_preset_headers()[0]["name"] == "Preset"
    assert parser.get_instrument_headers()[0]["name"] == "Instrument"


def test_long_names_are_truncated():
    parser = SoundFontParser(create_sf2({
        "name": "An Extremely Long Instrument Name",
        "samples": [{"name": "a sample name that is far too long", "data": [0.0] * 4}],
    }))

    assert parser.get_preset_headers()[0]["name"] == "An Extremely Long In"
    assert parser.get_instrument_headers()[0]["name"] == "An Extremely Long In"
    assert parser.get_sample_headers()[0]["raw_name"] == b"a sample name that i"
    assert parser.info_data["bank_name"] == "An Extremely Long Instrument Name"


def test_drum_kit():
    data = create_sf2({
        "name": "TestDrumKit",
        "is_drum_kit": True,
        "samples": [
            {"name": "kick", "data": [0.9] * 10000},
            {"name": "snare", "data": [0.7] * 10000},
        ],
    })
    parser = SoundFontParser(data)

    assert parser.get_preset_headers()[0]["bank"] == 128

    instruments = parser.get_instrument_headers()
    assert instruments[-1] == {"name": "EOI", "bag_ndx": 3}
    assert [b["gen_ndx"] for b in parser.get_instrument_bags()] == [0, 2, 4, 6]

    global_zone, kick, snare = parser.get_instrument_zones(0)
    assert global_zone == [
        {"oper": GENERATOR_IDS["scaleTuning"], "amount": 0},
        {"oper": GENERATOR_IDS["releaseVolEnv"], "amount": 2000},
    ]
    assert _key_range(kick) == (36, 36)
    assert _key_range(snare) == (38, 38)
    assert kick[-1] == {"oper": SAMPLE_ID, "amount": 0}
    assert snare[-1] == {"oper": SAMPLE_ID, "amount": 1}

    headers = parser.get_sample_headers()[:-1]
    assert [h["original_key"] for h in headers] == [255, 255]


def test_drum_kit_hats_choke_each_other():
    data = create_sf2(Instrument(is_drum_kit=True, samples=[
        SampleDescriptor(name="closed hat", data=[0.1] * 10),
        SampleDescriptor(name="open hat", data=[0.1] * 10),
    ]))
    zones = SoundFontParser(data).get_instrument_zones(0)[1:]

    for zone in zones:
        assert {"oper": GENERATOR_IDS["exclusiveClass"], "amount": 1} in zone
    assert [_key_range(z) for z in zones] == [(42, 42), (46, 46)]


def test_stereo_sample_headers_and_zones():
    data = create_sf2({"samples": [
        {"name": "Grand Piano", "data": [0.5, -0.5] * 100, "channels": 2, "root_note": 60},
    ]})
    parser = SoundFontParser(data)

    left, right = parser.get_sample_headers()[:-1]
    assert (left["name"], right["name"]) == ("GrandPiano_L", "GrandPiano_R")
    assert (left["sample_type"], right["sample_type"]) == (SAMPLE_TYPE_LEFT, SAMPLE_TYPE_RIGHT)
    assert (left["sample_link"], right["sample_link"]) == (1, 0)
    assert right["start"] == 100 + GUARD_FRAMES

    zones = parser.get_instrument_zones(0)
    assert len(zones) == 2
    assert [_key_range(z) for z in zones] == [(0, 127), (0, 127)]
    assert zones[0][1] == {"oper": GENERATOR_IDS["pan"], "amount": -500}
    assert zones[1][1] == {"oper": GENERATOR_IDS["pan"], "amount": 500}
    assert [z[-1]["amount"] for z in zones] == [0, 1]


def test_stereo_links_are_mutual_in_file():
    data = create_sf2({"samples": [
        {"name": "a", "data": [0.0] * 20, "channels": 2, "root_note": 40},
        {"name": "b", "data": [0.0] * 10, "root_note": 60},
        {"name": "c", "data": [0.0] * 20, "channels": 2, "root_note": 80},
    ]})
    pool = SoundFontParser(data).get_sample_headers()[:-1]

    for idx, header in enumerate(pool):
        if header["sample_type"] != 1:
            assert pool[header["sample_link"]]["sample_link"] == idx


def test_bags_match_generators():
    data = create_sf2({"samples": [
        {"name": "a", "data": [0.0] * 50, "channels": 2, "root_note": 40, "loop_start": 1, "loop_end": 20},
        {"name": "b", "data": [0.0] * 30, "root_note": 60},
        {"name": "c", "data": [0.0] * 40, "root_note": 80, "loop_start": 5, "loop_end": 39},
    ]})
    parser = SoundFontParser(data)

    bags = parser.get_instrument_bags()
    gens = parser.get_instrument_generators()
    assert bags[-1]["gen_ndx"] == len(gens) - 1
    assert gens[-1] == {"oper": 0, "amount": 0}

    covered = []
    for zone in parser.get_instrument_zones(0):
        assert zone[0]["oper"] == KEY_RANGE
        assert zone[-1]["oper"] == SAMPLE_ID
        assert _opers(zone).count(SAMPLE_ID) == 1
        lo, hi = _key_range(zone)
        if zone[-1]["amount"] != 1:  # right channel companion
            covered.extend(range(lo, hi + 1))
    assert covered == list(range(128))


def test_key_ranges_mode():
    instrument = Instrument(
        key_mapping="ranges",
        samples=[
            SampleDescriptor(name="low", data=[0.0] * 4, root_note=40, key_range=(0, 47)),
            SampleDescriptor(name="high", data=[0.0] * 4, root_note=70, key_range=(48, 127)),
        ],
    )
    zones = SoundFontParser(create_sf2(instrument)).get_instrument_zones(0)

    assert [_key_range(z) for z in zones] == [(0, 47), (48, 127)]


def test_encoding_is_deterministic(sine):
    instrument = {
        "name": "Same",
        "author": "me",
        "samples": [
            {"name": "a", "data": sine(300), "root_note": 48, "loop_start": 10, "loop_end": 200},
            {"name": "b", "data": np.tile(sine(150), 2), "channels": 2, "root_note": 72},
        ],
    }

    assert create_sf2(instrument) == create_sf2(instrument)


def test_capacity_too_small_is_fatal():
    with pytest.raises(OverflowError):
        SoundFontCompiler({"samples": [{"name": "a", "data": [0.0] * 1000}]}, capacity=512).compile()


def test_capacity_large_enough():
    data = SoundFontCompiler({}, capacity=552).compile()

    assert len(data) == 552


def test_empty_drum_kit_placeholder_is_unpitched():
    parser = SoundFontParser(create_sf2({"is_drum_kit": True}))

    assert parser.get_preset_headers()[0]["bank"] == 128
    assert parser.get_sample_headers()[0]["original_key"] == 255


@pytest.mark.parametrize("oper, amount, fmt", [
    (SAMPLE_ID, 40000, "<HH"),
    (KEY_RANGE, (127 << 8) | 127, "<HH"),
    (GENERATOR_IDS["instrument"], 65535, "<HH"),
    (GENERATOR_IDS["pan"], -500, "<Hh"),
])
def test_write_generator_signedness(oper, amount, fmt):
    writer = ChunkWriter()
    write_generator(writer, oper, amount)

    assert writer.getvalue() == struct.pack(fmt, oper, amount)
