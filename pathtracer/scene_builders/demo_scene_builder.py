import numpy as np

from pathtracer.core.geometry import Sphere
from pathtracer.core.material import Dielectric, Lambertian, Metal
from pathtracer.core.math import Color, Vec3
from pathtracer.core.scene import CameraParams, RenderSettings, Scene, SkyBackground, World


class DemoSceneBuilder:
    """The "final render" scene: a field of small random spheres around three large ones."""

    def __init__(self, seed: int = 0, grid: int = 11):
        # The layout has its own generator so it does not depend on the render seed.
        self.seed = seed
        self.grid = grid

        self.small_radius = 0.2
        self.big_radius = 1.0
        self.ground_radius = 1000.0

    def build_scene(self, settings: RenderSettings = None) -> Scene:
        if settings is None:
            settings = RenderSettings(width=400, height=225, samples_per_pixel=10, max_depth=10)
        world = World()

        materials = self._create_materials()
        world.add(Sphere(Vec3(0, -self.ground_radius, 0), self.ground_radius, materials["ground"]))
        self._create_small_spheres(world, materials)
        self._create_big_spheres(world, materials)

        return Scene(world=world, camera=self.create_camera(), settings=settings, background=SkyBackground())

    def create_camera(self) -> CameraParams:
        return CameraParams.from_defocus_angle(
            lookfrom=Vec3(13, 2, 3),
            lookat=Vec3(0, 0, 0),
            vup=Vec3(0, 1, 0),
            vfov=20.0,
            defocus_angle=0.6,
            focus_dist=10.0,
        )

    def _create_materials(self) -> dict:
        return {
            "ground": Lambertian(Color(0.5, 0.5, 0.5)),
            "glass": Dielectric(1.5),
            "diffuse": Lambertian(Color(0.4, 0.2, 0.1)),
            "mirror": Metal(Color(0.7, 0.6, 0.5), 0.0),
        }

    def _create_small_spheres(self, world: World, materials: dict) -> None:
        rng = np.random.default_rng(self.seed)
        keep_clear = Vec3(4, self.small_radius, 0)

        for a in range(-self.grid, self.grid):
            for b in range(-self.grid, self.grid):
                choose_mat = rng.random()
                center = Vec3(a + 0.9 * rng.random(), self.small_radius, b + 0.9 * rng.random())
                if (center - keep_clear).length() <= 0.9:
                    continue

                if choose_mat < 0.8:
                    albedo = Color(*rng.random(3)) * Color(*rng.random(3))
                    material = Lambertian(albedo)
                elif choose_mat < 0.95:
                    albedo = Color(*rng.uniform(0.5, 1.0, 3))
                    material = Metal(albedo, rng.uniform(0.0, 0.5))
                else:
                    material = materials["glass"]
                world.add(Sphere(center, self.small_radius, material))

    def _create_big_spheres(self, world: World, materials: dict) -> None:
        world.add(Sphere(Vec3(0, 1, 0), self.big_radius, materials["glass"]))
        world.add(Sphere(Vec3(-4, 1, 0), self.big_radius, materials["diffuse"]))
        world.add(Sphere(Vec3(4, 1, 0), self.big_radius, materials["mirror"]))
