"""Scene files: JSON in, ``Scene`` out.

The format is the one the original renderer reads and writes::

    {"camera": {"width": ..., "height": ..., "samples_per_pixel": ...,
                "max_depth": ..., "vfov": ..., "lookfrom": {"x":..,"y":..,"z":..},
                "lookat": ..., "vup": ..., "defocus_angle": ..., "focus_dist": ...},
     "object_list": {"objects": [{"Sphere": {"center": ..., "radius": ...,
                                             "material": {"Lambertian": {"albedo": [r, g, b]}}}}]}}

Vectors may also be written as ``[x, y, z]``. A top-level ``"materials"``
table names materials that several objects share, and objects refer to them
by name. ``"background"`` is ``"sky"`` (default) or an ``[r, g, b]`` color.
"""

import json
import logging
import math
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union

from pathtracer.core.errors import SceneError
from pathtracer.core.geometry import Hittable, Plane, Sphere, Triangle
from pathtracer.core.material import Dielectric, Lambertian, Material, Metal
from pathtracer.core.math import Color, Vec3
from pathtracer.core.scene import (
    Background,
    CameraParams,
    ConstantBackground,
    RenderSettings,
    Scene,
    SkyBackground,
    World,
)

logger = logging.getLogger(__name__)

# Image sizes, sample counts and seeds beyond this are rejected as out of range.
MAX_INT = 2 ** 31 - 1


def _require(data: dict, key: str, path: str):
    if not isinstance(data, dict):
        raise SceneError(f"{path}: expected an object, got {type(data).__name__}")
    if key not in data:
        raise SceneError(f"{path}: missing required key '{key}'")
    return data[key]


def _number(value, path: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise SceneError(f"{path}: expected a number, got {value!r}")
    try:
        number = float(value)
    except OverflowError:
        raise SceneError(f"{path}: number out of range") from None
    if not math.isfinite(number):
        raise SceneError(f"{path}: expected a finite number, got {value!r}")
    return number


def _integer(value, path: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise SceneError(f"{path}: expected an integer, got {value!r}")
    if abs(value) > MAX_INT:
        raise SceneError(f"{path}: integer out of range")
    return value


def _vec(value, path: str) -> Vec3:
    if isinstance(value, dict):
        return Vec3(*(_number(_require(value, k, path), f"{path}.{k}") for k in ("x", "y", "z")))
    if isinstance(value, (list, tuple)) and len(value) == 3:
        return Vec3(*(_number(v, f"{path}[{i}]") for i, v in enumerate(value)))
    raise SceneError(f"{path}: expected a vector as {{x, y, z}} or [x, y, z], got {value!r}")


def _color(value, path: str) -> Color:
    color = _vec(value, path)
    if min(color) < 0.0:
        raise SceneError(f"{path}: color components must be non-negative, got {list(color)}")
    return color


def _single_kind(value, path: str):
    if not isinstance(value, dict) or len(value) != 1:
        raise SceneError(f"{path}: expected an object with exactly one kind key, got {value!r}")
    (kind, params), = value.items()
    if not isinstance(params, dict):
        raise SceneError(f"{path}.{kind}: expected an object of parameters, got {params!r}")
    return kind, params


def _lambertian(params: dict, path: str) -> Material:
    return Lambertian(_color(_require(params, "albedo", path), f"{path}.albedo"))


def _metal(params: dict, path: str) -> Material:
    albedo = _color(_require(params, "albedo", path), f"{path}.albedo")
    fuzz = _number(params.get("fuzz", 0.0), f"{path}.fuzz")
    if fuzz < 0.0:
        raise SceneError(f"{path}.fuzz: must be non-negative, got {fuzz}")
    return Metal(albedo, fuzz)


def _dielectric(params: dict, path: str) -> Material:
    index = _number(_require(params, "refraction_index", path), f"{path}.refraction_index")
    if index <= 0.0:
        raise SceneError(f"{path}.refraction_index: must be positive, got {index}")
    return Dielectric(index)


MATERIAL_PARSERS: Dict[str, Callable[[dict, str], Material]] = {
    "Lambertian": _lambertian,
    "Metal": _metal,
    "Glass": _dielectric,
    "Dielectric": _dielectric,
}


class JSONSceneBuilder:
    """Builds a ``Scene`` from a parsed scene document."""

    def __init__(self, data: Any, source: str = "<scene>"):
        if not isinstance(data, dict):
            raise SceneError(f"{source}: scene must be a JSON object")
        self.data = data
        self.source = source
        self.materials: Dict[str, Material] = {}

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "JSONSceneBuilder":
        path = Path(path)
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise SceneError(f"cannot read scene file {path}: {e.strerror or e}") from e
        return cls.from_string(text, source=str(path))

    @classmethod
    def from_string(cls, text: str, source: str = "<scene>") -> "JSONSceneBuilder":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise SceneError(f"{source}: invalid JSON at line {e.lineno} column {e.colno}: {e.msg}") from e
        except ValueError as e:
            # integers past the interpreter's digit limit
            raise SceneError(f"{source}: invalid JSON: {e}") from e
        return cls(data, source)

    def build_scene(self) -> Scene:
        camera_data = _require(self.data, "camera", self.source)
        settings = self.create_settings(camera_data)
        camera = self.create_camera_params(camera_data)

        self.materials = self._create_materials(self.data.get("materials", {}))
        world = self._create_world(_require(self.data, "object_list", self.source))
        background = self._create_background(self.data.get("background", "sky"))

        scene = Scene(world=world, camera=camera, settings=settings, background=background)
        # Reject camera geometry problems now rather than when rendering starts.
        scene.build_camera()
        logger.debug("%s: %d object(s), %d named material(s)", self.source, len(world), len(self.materials))
        return scene

    def create_settings(self, camera_data: dict) -> RenderSettings:
        path = f"{self.source}: camera"
        kwargs = {
            "width": _integer(_require(camera_data, "width", path), f"{path}.width"),
            "height": _integer(_require(camera_data, "height", path), f"{path}.height"),
        }
        for key in ("samples_per_pixel", "max_depth", "seed", "workers"):
            if camera_data.get(key) is not None:
                kwargs[key] = _integer(camera_data[key], f"{path}.{key}")
        return RenderSettings(**kwargs)

    def create_camera_params(self, camera_data: dict) -> CameraParams:
        path = f"{self.source}: camera"
        lookfrom = _vec(_require(camera_data, "lookfrom", path), f"{path}.lookfrom")
        lookat = _vec(_require(camera_data, "lookat", path), f"{path}.lookat")
        vup = _vec(camera_data.get("vup", [0, 1, 0]), f"{path}.vup")
        vfov = _number(camera_data.get("vfov", 90.0), f"{path}.vfov")
        if "focus_dist" in camera_data:
            focus_dist = _number(camera_data["focus_dist"], f"{path}.focus_dist")
        else:
            focus_dist = (lookfrom - lookat).length()

        if "aperture" in camera_data and "defocus_angle" in camera_data:
            raise SceneError(f"{path}: give either 'aperture' or 'defocus_angle', not both")
        if "defocus_angle" in camera_data:
            angle = _number(camera_data["defocus_angle"], f"{path}.defocus_angle")
            return CameraParams.from_defocus_angle(lookfrom, lookat, vup, vfov, angle, focus_dist)
        aperture = _number(camera_data.get("aperture", 0.0), f"{path}.aperture")
        return CameraParams(lookfrom, lookat, vup, vfov, None, aperture, focus_dist)

    def _create_materials(self, table) -> Dict[str, Material]:
        path = f"{self.source}: materials"
        if not isinstance(table, dict):
            raise SceneError(f"{path}: expected an object mapping names to materials")
        return {name: self._parse_material(spec, f"{path}.{name}") for name, spec in table.items()}

    def _parse_material(self, value, path: str) -> Material:
        if isinstance(value, str):
            if value not in self.materials:
                raise SceneError(f"{path}: unknown material name '{value}'")
            return self.materials[value]
        kind, params = _single_kind(value, path)
        parser = MATERIAL_PARSERS.get(kind)
        if parser is None:
            raise SceneError(f"{path}: unknown material kind '{kind}' "
                             f"(expected one of {', '.join(MATERIAL_PARSERS)})")
        return parser(params, f"{path}.{kind}")

    def _sphere(self, params: dict, path: str) -> Hittable:
        center = _vec(_require(params, "center", path), f"{path}.center")
        radius = _number(_require(params, "radius", path), f"{path}.radius")
        if radius <= 0.0:
            raise SceneError(f"{path}.radius: must be positive, got {radius}")
        material = self._parse_material(_require(params, "material", path), f"{path}.material")
        return Sphere(center, radius, material)

    def _plane(self, params: dict, path: str) -> Hittable:
        point = _vec(_require(params, "point", path), f"{path}.point")
        normal = _vec(_require(params, "normal", path), f"{path}.normal")
        if normal.near_zero():
            raise SceneError(f"{path}.normal: must not be the zero vector")
        material = self._parse_material(_require(params, "material", path), f"{path}.material")
        return Plane(point, normal, material)

    def _triangle(self, params: dict, path: str) -> Hittable:
        v0, v1, v2 = (_vec(_require(params, k, path), f"{path}.{k}") for k in ("v0", "v1", "v2"))
        if (v1 - v0).cross(v2 - v0).near_zero():
            raise SceneError(f"{path}: triangle vertices are collinear")
        material = self._parse_material(_require(params, "material", path), f"{path}.material")
        return Triangle(v0, v1, v2, material)

    def _create_world(self, object_list) -> World:
        path = f"{self.source}: object_list"
        objects = _require(object_list, "objects", path)
        if not isinstance(objects, list):
            raise SceneError(f"{path}.objects: expected a list")

        parsers = {"Sphere": self._sphere, "Plane": self._plane, "Triangle": self._triangle}
        world = World()
        for index, entry in enumerate(objects):
            entry_path = f"{path}.objects[{index}]"
            kind, params = _single_kind(entry, entry_path)
            parser = parsers.get(kind)
            if parser is None:
                raise SceneError(f"{entry_path}: unknown object kind '{kind}' "
                                 f"(expected one of {', '.join(parsers)})")
            world.add(parser(params, f"{entry_path}.{kind}"))
        return world

    def _create_background(self, value) -> Background:
        path = f"{self.source}: background"
        if value == "sky":
            return SkyBackground()
        return ConstantBackground(_color(value, path))


def load_scene(path: Union[str, Path]) -> Scene:
    return JSONSceneBuilder.from_file(path).build_scene()


def scene_to_dict(scene: Scene) -> dict:
    """Inverse of ``JSONSceneBuilder``: materials used by more than one object go in the table."""
    uses: Dict[int, int] = {}
    for obj in scene.world:
        uses[id(obj.material)] = uses.get(id(obj.material), 0) + 1

    table: Dict[str, dict] = {}
    names: Dict[int, str] = {}
    for obj in scene.world:
        key = id(obj.material)
        if uses[key] > 1 and key not in names:
            names[key] = f"material_{len(names)}"
            table[names[key]] = obj.material.to_dict()

    settings, camera = scene.settings, scene.camera
    camera_data = {
        "width": settings.width,
        "height": settings.height,
        "samples_per_pixel": settings.samples_per_pixel,
        "max_depth": settings.max_depth,
        "seed": settings.seed,
        "vfov": camera.vfov,
        "lookfrom": list(camera.lookfrom),
        "lookat": list(camera.lookat),
        "vup": list(camera.vup),
        "aperture": camera.aperture,
        "focus_dist": camera.focus_dist,
    }
    if settings.workers is not None:
        camera_data["workers"] = settings.workers
    data = {
        "camera": camera_data,
        "object_list": {"objects": [obj.to_dict(names) for obj in scene.world]},
        "background": scene.background.to_json(),
    }
    if table:
        data["materials"] = table
    return data


def save_scene(scene: Scene, path: Union[str, Path], indent: Optional[int] = 2) -> None:
    Path(path).write_text(json.dumps(scene_to_dict(scene), indent=indent), encoding="utf-8")
