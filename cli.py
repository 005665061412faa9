"""
Command Line Interface for somap with observability
"""

import argparse
import os
import sys
import time

import numpy as np
import structlog

from somap import (
    Map,
    MapConfig,
    TrainConfig,
    UnitShape,
    InitStrategy,
    Algorithm,
    DecayStrategy,
    Neighborhood,
    DataSet,
    SOMError,
    grid_size,
    setup_logging,
    trace_operation,
    __version__,
)
from somap.dataset import parse_dims

# Initialize observability
setup_logging(
    log_level=os.getenv("LOG_LEVEL", "INFO"),
    json_format=False,  # Use console format for CLI
)

logger = structlog.get_logger()


def _choices(enum_class):
    return [member.value for member in enum_class]


def load_data(file_path: str, cls_path: str = None, scale: bool = False) -> np.ndarray:
    """Load a data set and optionally scale its features"""
    dataset = DataSet.from_file(file_path, cls_path)
    if scale:
        logger.info("Attempting feature scaling")
        dataset = dataset.scale()
    return dataset.data


def save_model(som: Map, output_path: str) -> None:
    """Save trained map model"""
    try:
        som.save(output_path)
        print(f"Model saved to: {output_path}")
    except (IOError, OSError) as e:
        print(f"Error saving model: {e}", file=sys.stderr)
        sys.exit(1)


def train_command(args) -> None:
    """Train a SOM model"""
    try:
        logger.info("Loading data set", path=args.input)
        data = load_data(args.input, args.cls, args.scale)
        print(f"Data shape: {data.shape}")

        dims = parse_dims(args.dims)
        if dims is None:
            dims = grid_size(data, args.ushape)
            logger.info("Estimated map dimensions", dims=dims)

        map_config = MapConfig(
            size=tuple(dims),
            unit_shape=args.ushape,
            init_strategy=args.init,
            seed=args.seed,
        )
        train_config = TrainConfig(
            algorithm=args.training,
            radius=args.radius,
            radius_decay=args.rdecay,
            neighborhood=args.neighb,
            learning_rate=args.lrate,
            learning_rate_decay=args.ldecay,
            workers=args.workers,
        )

        logger.info(
            "Creating new SOM",
            dims=dims,
            unit_shape=args.ushape,
            init=args.init,
        )
        with trace_operation("cli_train", input=args.input, dims=list(dims)):
            som = Map(map_config, data, verbose=args.verbose)

            logger.info(
                "Starting SOM training", method=args.training, iterations=args.iters
            )
            t0 = time.time()
            som.train(train_config, data, args.iters)
            logger.info(
                "Training successfully completed", duration_seconds=time.time() - t0
            )

        qe = som.quant_error(data)
        tp = som.topo_product()
        te = som.topo_error(data)
        logger.info("Quantization error", value=qe)
        logger.info("Topographic product", value=tp)
        logger.info("Topographic error", value=te)

        print("Training completed!")
        print(f"Quantization Error: {qe:.4f}")
        print(f"Topographic Product: {tp:.4f}")
        print(f"Topographic Error: {te:.4f}")
    except (SOMError, ValueError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if args.output:
        save_model(som, args.output)

    try:
        if args.umatrix:
            som.plot_umatrix(show_plot=False, save_path=args.umatrix)
            print(f"U-matrix saved to: {args.umatrix}")

        if args.export:
            path = som.export_codebook(args.export)
            print(f"Codebook exported to: {path}")
    except (IOError, OSError) as e:
        print(f"Error writing output: {e}", file=sys.stderr)
        sys.exit(1)


def info_command(args) -> None:
    """Show information about a trained SOM"""
    print(f"Loading model from: {args.model}")
    try:
        som = Map.load(args.model)
    except (IOError, OSError, SOMError) as e:
        print(f"Error loading model: {e}", file=sys.stderr)
        sys.exit(1)

    info = som.get_info()

    print("\n=== SOM Model Information ===")
    print(f"Shape: {info['shape'][0]}x{info['shape'][1]}")
    print(f"Features: {info['n_features']}")
    print(f"Total Units: {info['n_units']}")
    print(f"Total Iterations: {info['total_iterations']}")

    print("\n=== Configuration ===")
    for key, value in info["config"].items():
        print(f"{key}: {value}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Self-Organizing Map CLI",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Train command
    train_parser = subparsers.add_parser(
        "train",
        help="Train a new SOM model",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    train_parser.add_argument("input", help="Input data file (.csv or .lrn)")
    train_parser.add_argument("--cls", help="Classification file for the data set")
    train_parser.add_argument(
        "--scale", action="store_true", help="Scale features before training"
    )
    train_parser.add_argument(
        "--dims",
        default="",
        help="Comma-separated map dimensions rows,cols (estimated if empty)",
    )
    train_parser.add_argument(
        "--ushape",
        choices=_choices(UnitShape),
        default=UnitShape.HEXAGONAL.value,
        help="Map unit shape",
    )
    train_parser.add_argument(
        "--init",
        choices=_choices(InitStrategy),
        default=InitStrategy.RANDOM.value,
        help="Codebook initialization strategy",
    )
    train_parser.add_argument(
        "--radius",
        type=float,
        help="Initial neighbourhood radius (half the larger map side if not set)",
    )
    train_parser.add_argument(
        "--rdecay",
        choices=_choices(DecayStrategy),
        default=DecayStrategy.LINEAR.value,
        help="Radius decay strategy",
    )
    train_parser.add_argument(
        "--neighb",
        choices=_choices(Neighborhood),
        default=Neighborhood.GAUSSIAN.value,
        help="Neighbourhood function",
    )
    train_parser.add_argument(
        "--lrate", type=float, default=0.5, help="Initial learning rate"
    )
    train_parser.add_argument(
        "--ldecay",
        choices=_choices(DecayStrategy),
        default=DecayStrategy.LINEAR.value,
        help="Learning rate decay strategy",
    )
    train_parser.add_argument(
        "--training",
        choices=_choices(Algorithm),
        default=Algorithm.SEQUENTIAL.value,
        help="Training algorithm",
    )
    train_parser.add_argument(
        "--iters", type=int, default=1000, help="Number of training iterations"
    )
    train_parser.add_argument(
        "--workers", type=int, help="Batch training workers (CPU count if not set)"
    )
    train_parser.add_argument(
        "--seed", type=int, help="Random seed for reproducibility"
    )
    train_parser.add_argument("--output", "-o", help="Output model file")
    train_parser.add_argument("--umatrix", help="Output U-matrix image (.png or .svg)")
    train_parser.add_argument("--export", help="Export the codebook as a .npy file")
    train_parser.add_argument("--verbose", action="store_true", help="Verbose output")

    # Info command
    info_parser = subparsers.add_parser("info", help="Show model information")
    info_parser.add_argument("model", help="Trained model file")

    # Version command
    subparsers.add_parser("version", help="Show version information")

    return parser


def main(argv=None):
    """Main CLI entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    if args.command == "train":
        train_command(args)
    elif args.command == "info":
        info_command(args)
    elif args.command == "version":
        print(f"somap CLI v{__version__}")
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
