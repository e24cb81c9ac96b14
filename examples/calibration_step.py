"""Example of using the unified camera model inside an optimizer.

This example demonstrates:
1. Seeding a camera from image size and a field-of-view guess
2. Projecting points with Jacobians
3. Taking Gauss-Newton steps on the intrinsics
4. Checking the result with a project/unproject round trip
"""

import numpy as np

from unicam import UnifiedCamera
from unicam.utils import configure_logging


def main() -> None:
    """Run a small intrinsics refinement on synthetic data."""
    print("unicam calibration example")
    print("=" * 50)

    configure_logging("DEBUG")

    # Ground truth camera and synthetic observations
    true_camera = UnifiedCamera.get_test_projections()[0]
    width, height = UnifiedCamera.get_test_resolutions()[0]

    rng = np.random.default_rng(0)
    points = rng.uniform([-1.0, -0.8, 0.5], [1.0, 0.8, 2.0], size=(200, 3))
    observations, valid = true_camera.project(points)
    points, observations = points[valid], observations[valid]
    print(f"\n1. Generated {len(points)} valid observations")

    # Initial guess from resolution: focal length ~ width / 2
    camera = UnifiedCamera.from_initial_guess([width / 2, width / 2, width / 2, height / 2])
    print(f"2. Initial guess: {camera}")

    # Gauss-Newton on the intrinsics
    print("\n3. Refining intrinsics...")
    d_proj_d_param = np.zeros((len(points), 2, UnifiedCamera.N))
    for iteration in range(10):
        proj, valid = camera.project(points, d_proj_d_param=d_proj_d_param)
        residuals = (proj - observations)[valid].reshape(-1)
        J = d_proj_d_param[valid].reshape(-1, UnifiedCamera.N)

        delta = np.linalg.lstsq(J, -residuals, rcond=None)[0]
        camera.apply_increment(delta)

        rms = np.sqrt(np.mean(residuals**2))
        print(f"   iteration {iteration}: rms = {rms:.6f} px")

    print(f"\n   Refined: {camera}")
    print(f"   Truth:   {true_camera}")

    # Round trip
    pixel = np.array([width / 3, height / 3])
    ray, valid = camera.unproject(pixel)
    back, _ = camera.project(ray)
    print(f"\n4. Round trip {pixel} -> {ray} -> {back} (valid: {valid})")


if __name__ == "__main__":
    main()
