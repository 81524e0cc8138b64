"""
CLI entry point for the surface synthesis engine.

Usage:
    morphosphere <mesh.npz> [options]
    python -m morphosphere <mesh.npz> [options]
"""

import argparse
import json
import sys
import time
from pathlib import Path

from morphosphere.core.field import OscillatorField, TextureField
from morphosphere.core.presets import Preset
from morphosphere.engine import SurfaceSynthesisEngine, frame_times
from morphosphere.io.exporter import FrameExporter, load_rest_vertices
from morphosphere.params import SurfaceEffect, SynthesisParameters


def _progress_bar(current: int, total: int, width: int = 35):
    """Print a progress bar to stdout."""
    pct = current / max(total, 1) * 100
    filled = int(width * current / max(total, 1))
    bar = "#" * filled + "-" * (width - filled)
    if sys.stdout.isatty():
        sys.stdout.write(f"\r[{bar}] {pct:5.1f}%  frame {current}/{total}")
        sys.stdout.flush()
        if current >= total:
            sys.stdout.write("\n")
    else:
        if current % max(1, total // 20) == 0 or current >= total:
            print(f"{pct:5.1f}%  frame {current}/{total}", flush=True)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="morphosphere",
        description="Evaluate displaced sphere frames (positions, normals, distance)",
    )

    parser.add_argument(
        "mesh",
        type=Path,
        help="Rest mesh (.npz with positions/normals, or .npy positions)",
    )
    parser.add_argument(
        "-o", "--output",
        type=Path,
        default=None,
        help="Output path (default: <mesh>_frame.json / .npz; numbered when --frames > 1)",
    )
    parser.add_argument(
        "--format", type=str, default="json",
        choices=["json", "numpy"],
        help="Output format (default: json)",
    )

    # Timing
    parser.add_argument("-t", "--time", type=float, default=0.0, help="Start time in seconds")
    parser.add_argument("-n", "--frames", type=int, default=1, help="Number of frames (default: 1)")
    parser.add_argument("-f", "--fps", type=float, default=60.0, help="Frames per second (default: 60)")

    # Parameter sources
    parser.add_argument(
        "--config", type=Path, default=None,
        help="JSON file of flat control values (e.g. {\"noiseStrength\": 0.5})",
    )
    parser.add_argument(
        "--query", type=str, default=None,
        help="URL query string of control values (applied after --config)",
    )

    # Individual overrides (applied last)
    parser.add_argument("--preset", type=str, default=None, choices=[p.value for p in Preset])
    parser.add_argument(
        "--surface-effect", type=str, default=None,
        choices=[e.value for e in SurfaceEffect],
    )
    parser.add_argument("--noise-strength", type=float, default=None)
    parser.add_argument("--noise-frequency", type=float, default=None)
    parser.add_argument("--animation-speed", type=float, default=None)
    parser.add_argument("--hydra-blend", type=float, default=None)
    parser.add_argument("--hydra-strength", type=float, default=None)

    # Glitch
    parser.add_argument("--glitch", action="store_true", help="Enable grid glitch")
    parser.add_argument("--glitch-intensity", type=float, default=None)
    parser.add_argument("--glitch-grid", type=float, default=None, help="Glitch grid size (cells)")
    parser.add_argument("--glitch-speed", type=float, default=None)
    parser.add_argument("--glitch-randomness", type=float, default=None)

    # External field
    field_group = parser.add_mutually_exclusive_group()
    field_group.add_argument(
        "--field", type=Path, default=None,
        help="Image used as the external field (equirectangular)",
    )
    field_group.add_argument(
        "--oscillator", action="store_true",
        help="Use the built-in oscillator as the external field",
    )

    # Performance
    parser.add_argument("--workers", type=int, default=1, help="Evaluation threads (default: 1)")

    return parser


def build_parameters(args: argparse.Namespace) -> SynthesisParameters:
    """Defaults <- config file <- query string <- individual flags."""
    params = SynthesisParameters()

    if args.config is not None:
        with open(args.config, encoding="utf-8") as f:
            params = SynthesisParameters.from_dict(json.load(f), base=params)

    if args.query:
        params = SynthesisParameters.from_query(args.query, base=params)

    overrides = {
        "preset": args.preset,
        "surface_effect": args.surface_effect,
        "noise_strength": args.noise_strength,
        "noise_frequency": args.noise_frequency,
        "animation_speed": args.animation_speed,
        "hydra_blend": args.hydra_blend,
        "hydra_strength": args.hydra_strength,
        "glitch_intensity": args.glitch_intensity,
        "glitch_frequency": args.glitch_grid,
        "glitch_speed": args.glitch_speed,
        "glitch_randomness": args.glitch_randomness,
    }
    if args.glitch:
        overrides["glitch_enabled"] = True

    return params.updated(**{k: v for k, v in overrides.items() if v is not None})


def _frame_output_path(base: Path, index: int, total: int) -> Path:
    if total == 1:
        return base
    return base.with_name(f"{base.stem}_{index:05d}{base.suffix}")


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.mesh.exists():
        print(f"Error: Mesh file not found: {args.mesh}", file=sys.stderr)
        sys.exit(1)
    if args.config is not None and not args.config.exists():
        print(f"Error: Config file not found: {args.config}", file=sys.stderr)
        sys.exit(1)
    if args.field is not None and not args.field.exists():
        print(f"Error: Field image not found: {args.field}", file=sys.stderr)
        sys.exit(1)

    suffix = ".npz" if args.format == "numpy" else ".json"
    output = args.output
    if output is None:
        output = args.mesh.with_name(f"{args.mesh.stem}_frame{suffix}")

    try:
        rest = load_rest_vertices(args.mesh)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    params = build_parameters(args)

    field = None
    if args.field is not None:
        field = TextureField.from_file(args.field)
    elif args.oscillator:
        field = OscillatorField()

    print(f"Loaded {len(rest)} vertices from {args.mesh}")
    print(f"  Preset: {params.preset.value}, Surface: {params.surface_effect.value}")
    print(f"  Noise: strength {params.noise_strength:.2f}, frequency {params.noise_frequency:.2f}")
    print(f"  Field: {'none' if field is None else type(field).__name__}, blend {params.hydra_blend:.2f}")
    if params.glitch.enabled:
        print(f"  Glitch: grid {params.glitch.frequency:.0f}, intensity {params.glitch.intensity:.2f}")

    engine = SurfaceSynthesisEngine(rest, params, field=field, workers=args.workers)
    exporter = FrameExporter()

    times = frame_times(max(1, args.frames), args.fps, start=args.time)
    total = len(times)

    print(f"\nEvaluating {total} frame(s)")
    t0 = time.time()

    written = []
    for i, frame_time in enumerate(times):
        if isinstance(field, OscillatorField):
            field.time = float(frame_time)

        frame = engine.evaluate(frame_time)
        path = _frame_output_path(output, i, total)
        if args.format == "numpy":
            written.append(exporter.export_numpy(frame, params, frame_time, path, frame_index=i))
        else:
            written.append(exporter.export_json(frame, params, frame_time, path, frame_index=i))

        _progress_bar(i + 1, total)

    elapsed = time.time() - t0
    print(f"\nDone! {total} frame(s) in {elapsed:.2f}s")
    print(f"  Output: {written[0] if total == 1 else written[0].parent}")


if __name__ == "__main__":
    main()
