"""Volume of the unit disk inside the unit square.

K = {1 - x^2 - y^2 >= 0} sits inside B = [-1, 1]^2, so the exact volume is
pi. Each relaxation order gives an upper bound that decreases towards pi,
and the dual polynomial p satisfies p >= 1 on K and p >= 0 on B.

Usage:
    python disk_volume.py                        # Run without visualization
    python disk_volume.py --save                 # Save plots to current directory
    python disk_volume.py --save --outdir ./figs # Save plots to specific directory
"""

import argparse
from pathlib import Path

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import numpy as np

from gmp_volume import estimate_volume, make_set, bounding_box, monte_carlo_volume
from gmp_volume.extraction import classify
from gmp_volume.utils.visualization import plot_classification, plot_convergence


def example_disk(order: int = 6):
    """Upper bound on pi from the order-``order`` relaxation."""
    print("=" * 60)
    print(f"Unit disk in the unit square - order {order}")
    print("=" * 60)

    K = make_set("1 - x**2 - y**2 >= 0")
    B = make_set("1 - x**2 >= 0 & 1 - y**2 >= 0")

    result = estimate_volume(K, B, order)
    print(result.summary())

    reference = monte_carlo_volume(K, bounding_box(B), seed=42)
    print(f"\nExact volume:        {np.pi:.6f}")
    print(f"Quasi-Monte Carlo:   {reference:.6f}")
    print(f"Gap to exact:        {result.volume - np.pi:.6f}")

    for point in [(0.0, 0.0), (0.9, 0.9), (0.99, 0.99)]:
        label = classify(result.polynomial, point, K)
        print(f"classify{point} = {label}")

    assert result.volume >= np.pi - 1e-3, "relaxation must bound the volume from above"
    return K, B, result


def convergence_study(orders=(2, 4, 6)):
    """Bounds at increasing orders."""
    print("\n" + "=" * 60)
    print("Convergence over relaxation orders")
    print("=" * 60)

    K = make_set("1 - x**2 - y**2 >= 0")
    B = make_set("1 - x**2 >= 0 & 1 - y**2 >= 0")

    volumes = []
    for order in orders:
        result = estimate_volume(K, B, order)
        volumes.append(result.volume)
        print(f"order {order}: volume <= {result.volume:.6f} ({result.solve_time:.2f}s)")

    return list(orders), volumes


def parse_args():
    parser = argparse.ArgumentParser(description="Unit disk volume example")
    parser.add_argument('--order', type=int, default=6,
                        help='Relaxation order (default: 6)')
    parser.add_argument('--save', action='store_true',
                        help='Save plots to files')
    parser.add_argument('--outdir', type=str, default='.',
                        help='Output directory for saved plots (default: current dir)')
    return parser.parse_args()


if __name__ == "__main__":
    args = parse_args()

    K, B, result = example_disk(args.order)
    orders, volumes = convergence_study()

    print("\n" + "=" * 60)
    print("Disk volume example completed!")
    print("=" * 60)

    if args.save:
        fig1, ax1 = plt.subplots(figsize=(8, 8))
        plot_classification(result, K, bounding_box(B), ax=ax1)

        fig2, ax2 = plt.subplots()
        plot_convergence(orders, volumes, exact=np.pi, ax=ax2)

        outdir = Path(args.outdir)
        outdir.mkdir(parents=True, exist_ok=True)
        fig1.savefig(outdir / 'disk_classification.png', dpi=150, bbox_inches='tight')
        fig2.savefig(outdir / 'disk_convergence.png', dpi=150, bbox_inches='tight')
        print(f"\nFigures saved to {outdir.absolute()}")
