import logging
import numpy as np
from donut_config import DonutConfig

logger = logging.getLogger(__name__)

ROTATION_STRATEGIES = ("incremental", "direct")


def step_unit_pair(cos_val, sin_val, delta):
    """
    Advance a (cos, sin) pair by a small angle without trigonometric calls.

    A first-order rotation is followed by one Newton step that pulls
    cos² + sin² back towards 1, which bounds the drift of repeated updates.

    Args:
        cos_val (float):
            Current cosine.
        sin_val (float):
            Current sine.
        delta (float):
            Angle increment in radians.

    Returns:
        tuple[float, float]:
            The updated (cos, sin) pair.
    """
    new_cos = cos_val - delta*sin_val
    new_sin = sin_val + delta*cos_val
    norm = (3.0 - (new_cos*new_cos + new_sin*new_sin)) / 2.0
    return new_cos*norm, new_sin*norm



class Orientation:
    def __init__(self, strategy="incremental"):
        """
        Initialise the identity orientation (A = B = 0).

        Args:
            strategy (str):
                "incremental" advances cached (cos, sin) pairs with a
                renormalised recurrence, "direct" accumulates the angles
                and re-evaluates cos/sin on every rotation.

        Raises:
            ValueError:
                If the strategy is unknown.
        """
        if strategy not in ROTATION_STRATEGIES:
            raise ValueError(f"Unknown rotation strategy: {strategy!r}")
        self.strategy = strategy

        # Nominal angles. Only the cached pairs are consumed by the rasterizer.
        self.angle_a = 0.0
        self.angle_b = 0.0

        # Rotation angle A
        self.a_cos = 1.0
        self.a_sin = 0.0

        # Rotation angle B
        self.b_cos = 1.0
        self.b_sin = 0.0


    def __repr__(self):
        return (
            f"Orientation(strategy={self.strategy!r}, "
            f"a=({self.a_cos:.6f}, {self.a_sin:.6f}), b=({self.b_cos:.6f}, {self.b_sin:.6f}))")


    def rotate(self, da, db):
        """
        Increment the rotation angles in place.

        Args:
            da (float):
                Increment of angle A in radians.
            db (float):
                Increment of angle B in radians.
        """
        self.angle_a += da
        self.angle_b += db

        if self.strategy == "direct":
            self.a_cos, self.a_sin = float(np.cos(self.angle_a)), float(np.sin(self.angle_a))
            self.b_cos, self.b_sin = float(np.cos(self.angle_b)), float(np.sin(self.angle_b))
        else:
            self.a_cos, self.a_sin = step_unit_pair(self.a_cos, self.a_sin, da)
            self.b_cos, self.b_sin = step_unit_pair(self.b_cos, self.b_sin, db)


    def trig(self):
        """
        Returns:
            tuple[float, float, float, float]:
                (sin A, cos A, sin B, cos B).
        """
        return self.a_sin, self.a_cos, self.b_sin, self.b_cos


    def norms(self):
        return (
            self.a_cos*self.a_cos + self.a_sin*self.a_sin,
            self.b_cos*self.b_cos + self.b_sin*self.b_sin)


    def copy(self):
        other = Orientation(self.strategy)
        other.angle_a, other.angle_b = self.angle_a, self.angle_b
        other.a_cos, other.a_sin = self.a_cos, self.a_sin
        other.b_cos, other.b_sin = self.b_cos, self.b_sin
        return other



class Donut:
    def __init__(self, config=None):
        """
        Initialise the torus rasterizer.

        The sweep tables for the tube angle j and the ring angle i are
        computed once here. The rasterizer keeps no frame state, so one
        instance can render any number of orientations.

        Args:
            config (DonutConfig | None):
                Grid, projection and shading constants. The defaults
                (80 x 22 grid) are used when omitted.
        """
        self.config = config if config is not None else DonutConfig()

        j_angles = np.arange(self.config.num_j) * self.config.j_step
        i_angles = np.arange(self.config.num_i) * self.config.i_step

        # j varies along rows, i along columns, so a C-order ravel follows the sweep order.
        self._j_cos = np.cos(j_angles)[:, np.newaxis]
        self._j_sin = np.sin(j_angles)[:, np.newaxis]
        self._i_cos = np.cos(i_angles)[np.newaxis, :]
        self._i_sin = np.sin(i_angles)[np.newaxis, :]

        self._ramp = np.array(list(self.config.ramp), dtype="<U1")
        logger.debug("Donut sweep tables: %d tube x %d ring samples", self.config.num_j, self.config.num_i)


    def new_buffers(self):
        """
        Allocate a glyph buffer and a depth buffer for this grid.

        Returns:
            tuple[np.ndarray, np.ndarray]:
                Glyphs (``<U1``, background filled) and depth (float,
                zero filled), both of length width*height.
        """
        glyphs = np.full(self.config.size, fill_value=self.config.background, dtype="<U1")
        depth = np.zeros(self.config.size, dtype=float)
        return glyphs, depth


    def project(self, orientation):
        """
        Sample the torus surface for one orientation and project it.

        Only samples landing inside the grid with a positive closeness are
        kept. The order of the returned samples is the sweep order (tube
        angle outer, ring angle inner), which decides depth ties.

        Args:
            orientation (Orientation):
                Current rotation state.

        Returns:
            tuple[np.ndarray, np.ndarray, np.ndarray]:
                Cell index, closeness (1 / distance) and scaled luminance
                of each kept sample.
        """
        cfg = self.config
        sa, ca, sb, cb = orientation.trig()
        cj, sj = self._j_cos, self._j_sin
        ci, si = self._i_cos, self._i_sin

        h = cj + 2.0
        t = si*h*ca - sj*sa

        with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
            d = 1.0 / (si*h*sa + sj*ca + cfg.viewer_distance)
            cols = np.trunc(cfg.x_center + cfg.x_scale * d * (ci*h*cb - t*sb))
            rows = np.trunc(cfg.y_center + cfg.y_scale * d * (ci*h*sb + t*cb))

        luminance = cfg.brightness_factor * (
            (sj*sa - si*cj*ca)*cb
            - si*cj*sa
            - sj*ca
            - ci*cj*sb)

        visible = (
            (cols >= 0) & (cols < cfg.width)
            & (rows >= 0) & (rows < cfg.height)
            & (d > 0))

        cells = rows[visible].astype(np.intp) * cfg.width + cols[visible].astype(np.intp)
        return cells, d[visible], luminance[visible]


    def shade(self, luminance):
        """
        Map scaled luminance values to ramp glyphs.

        Values are truncated towards zero and clamped into the ramp, so any
        finite input selects one of the configured glyphs.

        Args:
            luminance (np.ndarray | float):
                Scaled luminance.

        Returns:
            np.ndarray:
                One glyph per input value.
        """
        idx = np.clip(np.trunc(luminance), 0, len(self._ramp) - 1).astype(np.intp)
        return self._ramp[idx]


    def render(self, orientation, glyphs, depth):
        """
        Render one frame in place.

        Both buffers are fully overwritten. A cell keeps the sample with the
        greatest closeness; among equally close samples the earliest one in
        sweep order wins, exactly as a strict ``>`` z-buffer loop would.

        Args:
            orientation (Orientation):
                Current rotation state.
            glyphs (np.ndarray of shape (width*height,)):
                Glyph buffer, one character per cell.
            depth (np.ndarray of shape (width*height,)):
                Depth buffer holding the closeness of each cell.

        Raises:
            ValueError:
                If a buffer does not have exactly width*height cells.
        """
        self._check_buffer("glyph", glyphs)
        self._check_buffer("depth", depth)

        glyphs.fill(self.config.background)
        depth.fill(0.0)

        cells, closeness, luminance = self.project(orientation)
        if cells.size == 0:
            return

        # Group samples by cell, nearest first, earliest first among equals.
        order = np.lexsort((np.arange(cells.size), -closeness, cells))
        sorted_cells = cells[order]
        first = np.empty(sorted_cells.size, dtype=bool)
        first[0] = True
        first[1:] = sorted_cells[1:] != sorted_cells[:-1]
        winners = order[first]

        depth[cells[winners]] = closeness[winners]
        glyphs[cells[winners]] = self.shade(luminance[winners])


    def frame(self, orientation):
        """
        Render into fresh buffers and return the frame as text rows.

        Returns:
            list[str]:
                ``height`` rows of ``width`` characters.
        """
        glyphs, depth = self.new_buffers()
        self.render(orientation, glyphs, depth)
        width = self.config.width
        return ["".join(glyphs[row:row + width]) for row in range(0, glyphs.size, width)]


    def _check_buffer(self, name, buffer):
        shape = getattr(buffer, "shape", None)
        if shape != (self.config.size,):
            raise ValueError(
                f"{name} buffer must be a 1-D array of {self.config.size} cells, got shape {shape}")
