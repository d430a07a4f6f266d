# Copyright (c) 2025 bakajikara
#
# This file is licensed under the MIT License (MIT).
# See the LICENSE file in the project root for the full license text.

"""
Command-line interface for sfbuilder.

Provides subcommands:
- build: build a single-instrument SoundFont from WAV files
- info: print the contents of a SoundFont file
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .compiler import SoundFontCompiler
from .constants import GENERATOR_NAMES, GUARD_FRAMES
from .parser import SoundFontParser
from .samples import KEY_MAPPING_NEAREST, Instrument
from .wavfile import load_descriptors


def _build_root_parser():
    p = argparse.ArgumentParser(prog="sfbuilder", description="sfbuilder command-line tool")
    sub = p.add_subparsers(dest="command", required=True)

    c_build = sub.add_parser("build", help="Build a SoundFont from WAV files")
    c_build.add_argument("instrument_name", help="Instrument name, also the default output file name")
    c_build.add_argument("wav_files", nargs="+", help="WAV files; melodic samples need a note name such as \"A3\" in the filename")
    c_build.add_argument("-o", "--output", help="Output SoundFont file path (default: <instrument_name>.sf2)")
    c_build.add_argument("-a", "--author", default="AutoGenerated", help="Author written to the IENG field (default: AutoGenerated)")
    c_build.add_argument("-d", "--drum-kit", action="store_true", help="Build a drum kit (bank 128) with one key per sample")
    c_build.add_argument("-f", "--force", action="store_true", help="Force overwrite without confirmation")

    c_info = sub.add_parser("info", help="Print the contents of a SoundFont file")
    c_info.add_argument("input_file", help="Input SoundFont file path")

    return p


def _run_build(args):
    out = Path(args.output) if args.output else Path(f"{args.instrument_name}.sf2")

    # Warn if output file exists (unless --force is used)
    if out.exists() and not args.force:
        response = input(f"Warning: \"{out}\" already exists. Overwrite? (y/n): ")
        if response.lower() != "y":
            print("Build cancelled.")
            return 0

    print(f"Reading {len(args.wav_files)} files...")
    descriptors = load_descriptors(args.wav_files, is_drum_kit=args.drum_kit)
    if not descriptors:
        raise ValueError("No valid samples found.")

    instrument = Instrument(
        name=args.instrument_name,
        author=args.author,
        is_drum_kit=args.drum_kit,
        samples=descriptors,
        key_mapping=KEY_MAPPING_NEAREST,
    )

    print("Creating SF2 file...")
    data = SoundFontCompiler(instrument).compile()

    with open(out, "wb") as f:
        f.write(data)

    print(f"SF2 file written to: {out} ({len(data):,} bytes)")
    return 0


def _format_generator(gen):
    name = GENERATOR_NAMES.get(gen["oper"], str(gen["oper"]))
    amount = gen["amount"]
    if name == "keyRange":
        return f"keyRange={amount & 0xFF}-{(amount >> 8) & 0xFF}"
    return f"{name}={amount}"


def _run_info(args):
    parser = SoundFontParser(args.input_file)

    print(f"File: {args.input_file} ({parser.file_size:,} bytes, RIFF size {parser.riff_size:,})")
    for key, value in parser.info_data.items():
        print(f"  {key}: {value}")

    presets = parser.get_preset_headers()[:-1]
    for preset in presets:
        print(f"Preset {preset['bank']}:{preset['preset']} \"{preset['name']}\"")

    instruments = parser.get_instrument_headers()
    for idx, inst in enumerate(instruments[:-1]):
        print(f"Instrument {idx} \"{inst['name']}\"")
        for zone_idx, zone in enumerate(parser.get_instrument_zones(idx)):
            gens = ", ".join(_format_generator(g) for g in zone)
            print(f"  Zone {zone_idx}: {gens}")

    samples = parser.get_sample_headers()[:-1]
    print(f"Samples ({len(samples)}, {GUARD_FRAMES} guard frames each):")
    for idx, s in enumerate(samples):
        print(
            f"  {idx}: \"{s['name']}\" {s['start']}-{s['end']} loop {s['start_loop']}-{s['end_loop']} "
            f"{s['sample_rate']} Hz key {s['original_key']} link {s['sample_link']} type {s['sample_type']}"
        )
    return 0


def main(argv=None):
    """
    Generic entry point for `python -m sfbuilder` or package-level CLI.

    Returns exit code (0 on success).
    """
    argv = list(argv) if argv is not None else None
    parser = _build_root_parser()
    args = parser.parse_args(argv)

    try:
        if args.command == "build":
            return _run_build(args)
        elif args.command == "info":
            return _run_info(args)
        else:
            parser.print_help()
            return 2
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
