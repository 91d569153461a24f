import logging
import numbers
import numpy as np

logger = logging.getLogger(__name__)

DEFAULT_RAMP = " .,-~:;=!*#$@"
RAMP_LENGTH = 13


class DonutConfig:
    def __init__(
        self,
        width=80,
        height=22,
        viewer_distance=5.0,
        brightness_factor=8.0,
        j_step=0.07,
        i_step=0.02,
        ramp=DEFAULT_RAMP):
        """
        Validate and freeze the rasterizer configuration.

        Args:
            width (int):
                Grid width in characters.
            height (int):
                Grid height in characters.
            viewer_distance (float):
                Offset added to the rotated z-coordinate before projection.
            brightness_factor (float):
                Scale applied to the surface luminance before it is turned
                into a ramp index.
            j_step (float):
                Angular step around the tube cross-section, in radians.
            i_step (float):
                Angular step around the ring, in radians.
            ramp (str):
                13 glyphs ordered from dimmest to brightest. The first one
                is the background glyph.

        Raises:
            ValueError:
                If any value is out of range. The configuration is never
                partially built.
        """
        self.width = self._check_dimension("width", width)
        self.height = self._check_dimension("height", height)

        self.viewer_distance = self._check_finite("viewer_distance", viewer_distance)
        if self.viewer_distance <= 0:
            raise ValueError(f"viewer_distance must be positive, got {viewer_distance}")
        self.brightness_factor = self._check_finite("brightness_factor", brightness_factor)

        self.j_step = self._check_step("j_step", j_step)
        self.i_step = self._check_step("i_step", i_step)

        if not isinstance(ramp, str) or len(ramp) != RAMP_LENGTH:
            raise ValueError(f"ramp must be a string of exactly {RAMP_LENGTH} glyphs, got {ramp!r}")
        self.ramp = ramp

        # Derived values, fixed for the lifetime of the configuration.
        self.size = self.width * self.height
        self.x_center = self.width / 2
        self.y_center = self.height / 2
        self.x_scale = 30.0 * (self.width / 80.0)
        self.y_scale = 15.0 * (self.height / 22.0)
        self.num_j = int(np.ceil(2*np.pi / self.j_step))
        self.num_i = int(np.ceil(2*np.pi / self.i_step))
        self.background = self.ramp[0]

        self._frozen = True
        logger.debug("Built %r (%d x %d samples per frame)", self, self.num_j, self.num_i)


    def __setattr__(self, name, value):
        if getattr(self, "_frozen", False):
            raise AttributeError(f"DonutConfig is read-only, cannot set {name!r}")
        super().__setattr__(name, value)


    def __repr__(self):
        return (
            f"DonutConfig(width={self.width}, height={self.height}, "
            f"viewer_distance={self.viewer_distance}, brightness_factor={self.brightness_factor}, "
            f"j_step={self.j_step}, i_step={self.i_step}, ramp={self.ramp!r})")


    def __eq__(self, other):
        if not isinstance(other, DonutConfig):
            return NotImplemented
        return self.as_dict() == other.as_dict()


    def __hash__(self):
        return hash(tuple(self.as_dict().items()))


    def as_dict(self):
        """
        Return the constructor arguments of this configuration.
        """
        return {
            "width": self.width,
            "height": self.height,
            "viewer_distance": self.viewer_distance,
            "brightness_factor": self.brightness_factor,
            "j_step": self.j_step,
            "i_step": self.i_step,
            "ramp": self.ramp,
        }


    def replace(self, **changes):
        """
        Build a new configuration with some values changed.

        Args:
            **changes:
                Constructor arguments to override.

        Returns:
            DonutConfig:
                A freshly validated configuration.
        """
        values = self.as_dict()
        unknown = set(changes) - set(values)
        if unknown:
            raise ValueError(f"Unknown configuration keys: {sorted(unknown)}")
        values.update(changes)
        return DonutConfig(**values)


    @staticmethod
    def _check_dimension(name, value):
        if isinstance(value, bool) or not isinstance(value, numbers.Integral):
            raise ValueError(f"{name} must be an integer, got {value!r}")
        if value < 1:
            raise ValueError(f"{name} must be at least 1, got {value}")
        return int(value)


    @staticmethod
    def _check_finite(name, value):
        if isinstance(value, bool) or not isinstance(value, numbers.Real):
            raise ValueError(f"{name} must be a number, got {value!r}")
        if not np.isfinite(value):
            raise ValueError(f"{name} must be finite, got {value}")
        return float(value)


    @classmethod
    def _check_step(cls, name, value):
        # A zero step never terminates the sweep, a full turn or more samples nothing useful.
        step = cls._check_finite(name, value)
        if not 0 < step < 2*np.pi:
            raise ValueError(f"{name} must be within (0, 2*pi), got {value}")
        return step
