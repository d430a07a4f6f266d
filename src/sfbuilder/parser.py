# Copyright (c) 2025 bakajikara
#
# This file is licensed under the MIT License (MIT).
# See the LICENSE file in the project root for the full license text.

"""
SoundFont Parser - Reads back SF2 files for inspection.
"""

import io
import struct

from .constants import (
    BAG_SIZE,
    GENERATOR_SIZE,
    INSTRUMENT_HEADER_SIZE,
    MODULATOR_SIZE,
    PRESET_HEADER_SIZE,
    SAMPLE_HEADER_SIZE,
    UNSIGNED_GENERATORS,
)
from .riff import read_chunk_header


def _decode_name(raw):
    return raw.split(b"\x00", 1)[0].decode("ascii", errors="ignore")


class SoundFontParser:
    """
    A parser for SF2 files.
    """

    def __init__(self, source):
        """
        Initializes the SoundFontParser and parses the file.

        Args:
            source: The path to the SF2 file, or the file contents as bytes.
        """
        if isinstance(source, (bytes, bytearray)):
            data = bytes(source)
        else:
            with open(source, "rb") as f:
                data = f.read()

        self.file_size = len(data)
        self.riff_size = 0
        self.list_order = []
        self.info_order = []
        self.info_data = {}
        self.sample_data = b""
        self.pdta = {}
        self.pdta_order = []

        self._parse(io.BytesIO(data))

    def _parse(self, f):
        """
        Parses the RIFF header and the three main lists.
        """
        riff_id, self.riff_size = read_chunk_header(f)
        if riff_id != b"RIFF":
            raise ValueError("Not a RIFF file")

        form_type = f.read(4)
        if len(form_type) < 4:
            raise EOFError("Unexpected end of file while reading form type.")
        if form_type != b"sfbk":
            raise ValueError("Not a SoundFont file")

        end = min(8 + self.riff_size, self.file_size)
        while f.tell() < end:
            chunk_id, chunk_size = read_chunk_header(f)
            if chunk_id == b"LIST":
                list_type = f.read(4)
                self.list_order.append(list_type.decode("ascii", errors="ignore"))
                payload = f.read(chunk_size - 4)
                if list_type == b"INFO":
                    self._parse_info_list(payload)
                elif list_type == b"sdta":
                    self._parse_sdta_list(payload)
                elif list_type == b"pdta":
                    self._parse_pdta_list(payload)
            else:
                f.seek(chunk_size, 1)  # Skip unknown chunk

            # Align to next word
            if chunk_size % 2:
                f.seek(1, 1)

    def _iter_subchunks(self, payload):
        f = io.BytesIO(payload)
        while f.tell() < len(payload):
            sub_id, sub_size = read_chunk_header(f)
            data = f.read(sub_size)

            # Handle padding
            if sub_size % 2:
                f.read(1)

            yield sub_id.decode("ascii", errors="ignore"), data

    def _parse_info_list(self, payload):
        for key, data in self._iter_subchunks(payload):
            self.info_order.append(key)
            if key == "ifil":
                major, minor = struct.unpack("<HH", data)
                self.info_data["version"] = f"{major}.{minor:02d}"
            elif key == "isng":
                self.info_data["sound_engine"] = _decode_name(data)
            elif key == "INAM":
                self.info_data["bank_name"] = _decode_name(data)
            elif key == "IENG":
                self.info_data["engineer"] = _decode_name(data)
            else:
                self.info_data[key.lower()] = _decode_name(data)

    def _parse_sdta_list(self, payload):
        for key, data in self._iter_subchunks(payload):
            if key == "smpl":
                self.sample_data = data

    def _parse_pdta_list(self, payload):
        for key, data in self._iter_subchunks(payload):
            self.pdta_order.append(key)
            self.pdta[key] = data

    def _get_records(self, chunk_name, record_size):
        """
        Splits a pdta sub-chunk into fixed-size records, terminator included.
        """
        data = self.pdta.get(chunk_name, b"")
        if len(data) % record_size:
            raise ValueError(f"{chunk_name} chunk size {len(data)} is not a multiple of {record_size}")
        return [data[i:i + record_size] for i in range(0, len(data), record_size)]

    def get_preset_headers(self):
        """
        Gets preset headers, including the EOP terminator.
        """
        headers = []
        for r in self._get_records("phdr", PRESET_HEADER_SIZE):
            values = struct.unpack("<HHHIII", r[20:38])
            headers.append({
                "name": _decode_name(r[0:20]),
                "preset": values[0],
                "bank": values[1],
                "bag_ndx": values[2],
                "library": values[3],
                "genre": values[4],
                "morphology": values[5]
            })
        return headers

    def get_instrument_headers(self):
        """
        Gets instrument headers, including the EOI terminator.
        """
        headers = []
        for r in self._get_records("inst", INSTRUMENT_HEADER_SIZE):
            bag_ndx = struct.unpack("<H", r[20:22])[0]
            headers.append({"name": _decode_name(r[0:20]), "bag_ndx": bag_ndx})
        return headers

    def get_sample_headers(self):
        """
        Gets sample headers, including the EOS terminator.
        """
        headers = []
        for r in self._get_records("shdr", SAMPLE_HEADER_SIZE):
            values = struct.unpack("<IIIIIBbHH", r[20:46])
            headers.append({
                "name": _decode_name(r[0:20]),
                "raw_name": r[0:20],
                "start": values[0],
                "end": values[1],
                "start_loop": values[2],
                "end_loop": values[3],
                "sample_rate": values[4],
                "original_key": values[5],
                "correction": values[6],
                "sample_link": values[7],
                "sample_type": values[8]
            })
        return headers

    def _get_bags(self, chunk_name):
        bags = []
        for r in self._get_records(chunk_name, BAG_SIZE):
            gen_ndx, mod_ndx = struct.unpack("<HH", r)
            bags.append({"gen_ndx": gen_ndx, "mod_ndx": mod_ndx})
        return bags

    def get_preset_bags(self):
        return self._get_bags("pbag")

    def get_instrument_bags(self):
        return self._get_bags("ibag")

    def _get_generators(self, chunk_name):
        generators = []
        for r in self._get_records(chunk_name, GENERATOR_SIZE):
            oper = struct.unpack("<H", r[0:2])[0]
            fmt = "<H" if oper in UNSIGNED_GENERATORS else "<h"
            amount = struct.unpack(fmt, r[2:4])[0]
            generators.append({"oper": oper, "amount": amount})
        return generators

    def get_preset_generators(self):
        return self._get_generators("pgen")

    def get_instrument_generators(self):
        return self._get_generators("igen")

    def _get_modulators(self, chunk_name):
        modulators = []
        for r in self._get_records(chunk_name, MODULATOR_SIZE):
            values = struct.unpack("<HHhHH", r)
            modulators.append({
                "src_oper": values[0],
                "dest_oper": values[1],
                "amount": values[2],
                "amt_src_oper": values[3],
                "trans_oper": values[4]
            })
        return modulators

    def get_preset_modulators(self):
        return self._get_modulators("pmod")

    def get_instrument_modulators(self):
        return self._get_modulators("imod")

    def get_instrument_zones(self, inst_idx=0):
        """
        Gets all zones for a given instrument index as lists of raw generator records.
        """
        headers = self.get_instrument_headers()
        bags = self.get_instrument_bags()
        gens = self.get_instrument_generators()

        bag_start = headers[inst_idx]["bag_ndx"]
        bag_end = headers[inst_idx + 1]["bag_ndx"]

        zones = []
        for bag_idx in range(bag_start, bag_end):
            gen_start = bags[bag_idx]["gen_ndx"]
            gen_end = bags[bag_idx + 1]["gen_ndx"]
            zones.append(gens[gen_start:gen_end])
        return zones

    def get_sample_pcm(self, sample_idx):
        """
        Gets the 16-bit PCM frames of one sample as a tuple of ints.
        """
        header = self.get_sample_headers()[sample_idx]
        raw = self.sample_data[header["start"] * 2:header["end"] * 2]
        return struct.unpack(f"<{len(raw) // 2}h", raw)
