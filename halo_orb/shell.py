"""
Halo Orb Renderer - Imperative Shell

Handles all GPU operations and side effects.
Uses pure functions from core.py for meshes and matrices, and reads
per-frame values from a HaloOrb.

Follows functional core, imperative shell pattern:
- core.py / halo.py: Pure math and animation state (testable, predictable)
- This module: GPU operations (side effects, resources, I/O)
"""

import time
from contextlib import contextmanager
from typing import Dict, List, Optional

import moderngl
import numpy as np
from PIL import Image

from .components import group_rotation_matrix
from .config import OrbConfig
from .core import (
    RING_HALF_WIDTH,
    build_ring_mesh,
    build_uv_sphere,
    euler_xyz,
    look_at_matrix,
    perspective_matrix,
    ring_base_radius,
)
from .halo import HaloOrb
from .shaders import (
    GLOW_FRAGMENT_SHADER,
    GLOW_VERTEX_SHADER,
    ORB_FRAGMENT_SHADER,
    ORB_VERTEX_SHADER,
    PARTICLE_FRAGMENT_SHADER,
    PARTICLE_VERTEX_SHADER,
    RING_FRAGMENT_SHADER,
    RING_VERTEX_SHADER,
)


# ============================================================================
# Performance Timing Utilities
# ============================================================================

class RenderTimings:
    """Accumulates timing data for rendering operations"""
    def __init__(self):
        self.timings = {}
        self.counts = {}

    def record(self, operation: str, duration: float):
        """Record timing for an operation"""
        if operation not in self.timings:
            self.timings[operation] = 0.0
            self.counts[operation] = 0
        self.timings[operation] += duration
        self.counts[operation] += 1

    def get_summary(self) -> Dict[str, Dict[str, float]]:
        """Get timing summary with total, average, and count"""
        summary = {}
        for op, total in self.timings.items():
            count = self.counts[op]
            summary[op] = {
                'total_ms': total * 1000,
                'avg_ms': (total / count) * 1000 if count > 0 else 0,
                'count': count
            }
        return summary


@contextmanager
def time_operation(timings: Optional[RenderTimings], operation: str):
    """Context manager to time an operation

    Args:
        timings: RenderTimings instance to record to (or None to skip timing)
        operation: Name of the operation being timed
    """
    if timings is None:
        yield
        return

    start = time.perf_counter()
    try:
        yield
    finally:
        timings.record(operation, time.perf_counter() - start)


def _set_uniform(program: moderngl.Program, name: str, value) -> None:
    """Write a uniform if the compiled program kept it"""
    member = program.get(name, None)
    if member is None:
        return
    if isinstance(value, np.ndarray):
        # numpy matrices are row-major, GLSL expects column-major
        member.write(value.T.astype('f4').tobytes())
    else:
        member.value = value


# ============================================================================
# GPU Context and Resource Management
# ============================================================================

class OrbRenderer:
    """Offscreen renderer for a HaloOrb

    Draw order per frame:
    1. Glow shell (back faces, additive, no depth test)
    2. Orb body (alpha blended, depth tested)
    3. Rings (additive, depth tested, no depth writes)
    4. Particles (additive point sprites, no depth test)

    The viewer sits on the +Z axis looking at the origin. Camera control is
    the host's concern.
    """

    def __init__(
        self,
        width: int = 800,
        height: int = 600,
        config: Optional[OrbConfig] = None,
        camera_distance: float = 8.0,
        fov: float = 75.0,
        enable_timing: bool = False
    ):
        """Initialize GPU context, programs and static meshes

        Side effects:
        - Creates OpenGL context
        - Allocates GPU memory for framebuffer and meshes
        - Compiles 4 shader programs

        Args:
            width: Frame width in pixels
            height: Frame height in pixels
            config: Orb configuration (mesh sizes, ring count)
            camera_distance: Viewer distance from the orb center
            fov: Vertical field of view in degrees
            enable_timing: Record per-pass timings
        """
        self.width = width
        self.height = height
        self.config = config if config is not None else OrbConfig()
        self.timings = RenderTimings() if enable_timing else None

        self.projection = perspective_matrix(fov, width / height, 0.1, 1000.0)
        self.view = look_at_matrix((0.0, 0.0, camera_distance), (0.0, 0.0, 0.0))

        # Create standalone OpenGL context (no window required)
        self.ctx = moderngl.create_standalone_context()
        self.ctx.enable(moderngl.BLEND | moderngl.PROGRAM_POINT_SIZE)

        self.color_buffer = self.ctx.renderbuffer((width, height), 4)
        self.depth_buffer = self.ctx.depth_renderbuffer((width, height))
        self.fbo = self.ctx.framebuffer(
            color_attachments=[self.color_buffer],
            depth_attachment=self.depth_buffer
        )

        # ====================================================================
        # Programs
        # ====================================================================

        self.orb_prog = self.ctx.program(
            vertex_shader=ORB_VERTEX_SHADER, fragment_shader=ORB_FRAGMENT_SHADER
        )
        self.particle_prog = self.ctx.program(
            vertex_shader=PARTICLE_VERTEX_SHADER, fragment_shader=PARTICLE_FRAGMENT_SHADER
        )
        self.ring_prog = self.ctx.program(
            vertex_shader=RING_VERTEX_SHADER, fragment_shader=RING_FRAGMENT_SHADER
        )
        self.glow_prog = self.ctx.program(
            vertex_shader=GLOW_VERTEX_SHADER, fragment_shader=GLOW_FRAGMENT_SHADER
        )
        for prog in (self.orb_prog, self.particle_prog, self.ring_prog, self.glow_prog):
            _set_uniform(prog, 'u_projection', self.projection)

        # ====================================================================
        # Static meshes (uploaded once)
        # ====================================================================

        cfg = self.config
        self._buffers: List[moderngl.Buffer] = []

        self.orb_vao, self.orb_index_count = self._sphere_vao(
            self.orb_prog, cfg.orb_radius, cfg.orb_segments
        )
        self.glow_vao, self.glow_index_count = self._sphere_vao(
            self.glow_prog, cfg.orb_radius * 2.0, cfg.glow_segments
        )

        self.ring_vaos = []
        for i in range(cfg.ring_count):
            radius = ring_base_radius(i)
            vertices, indices = build_ring_mesh(
                radius - RING_HALF_WIDTH, radius + RING_HALF_WIDTH, cfg.ring_segments
            )
            vbo = self._buffer(vertices)
            ibo = self._buffer(indices)
            vao = self.ctx.vertex_array(
                self.ring_prog, [(vbo, '3f 2f', 'in_position', 'in_uv')], ibo
            )
            self.ring_vaos.append(vao)

        # Particle buffers are sized on first upload
        self.particle_capacity = 0
        self.particle_vao = None
        self.particle_vbos: List[moderngl.Buffer] = []

    def _buffer(self, data: np.ndarray) -> moderngl.Buffer:
        buffer = self.ctx.buffer(data.tobytes())
        self._buffers.append(buffer)
        return buffer

    def _sphere_vao(self, program: moderngl.Program, radius: float, segments: int):
        vertices, indices = build_uv_sphere(radius, segments)
        vbo = self._buffer(vertices)
        ibo = self._buffer(indices)
        vao = self.ctx.vertex_array(program, [(vbo, '3f 3f', 'in_position', 'in_normal')], ibo)
        return vao, len(indices)

    def _ensure_particle_buffers(self, count: int) -> None:
        if self.particle_vao is not None and count == self.particle_capacity:
            return

        if self.particle_vao is not None:
            self.particle_vao.release()
            for vbo in self.particle_vbos:
                vbo.release()

        position_vbo = self.ctx.buffer(reserve=count * 3 * 4)
        color_vbo = self.ctx.buffer(reserve=count * 3 * 4)
        size_vbo = self.ctx.buffer(reserve=count * 4)
        self.particle_vbos = [position_vbo, color_vbo, size_vbo]
        self.particle_vao = self.ctx.vertex_array(
            self.particle_prog,
            [
                (position_vbo, '3f', 'in_position'),
                (color_vbo, '3f', 'in_color'),
                (size_vbo, '1f', 'in_size'),
            ]
        )
        self.particle_capacity = count

    def upload_particles(self, halo: HaloOrb) -> bool:
        """Upload particle buffers if the field changed since the last upload

        Returns:
            True if data was sent to the GPU
        """
        field = halo.particles
        buffers = field.buffers
        self._ensure_particle_buffers(buffers.count)

        if not field.needs_upload:
            return False

        with time_operation(self.timings, 'particle_upload'):
            position_vbo, color_vbo, size_vbo = self.particle_vbos
            position_vbo.write(buffers.positions.tobytes())
            color_vbo.write(buffers.colors.tobytes())
            size_vbo.write(buffers.sizes.tobytes())
        field.mark_uploaded()
        return True

    def get_timing_summary(self) -> Dict[str, Dict[str, float]]:
        """Get summary of timing data (empty when timing is disabled)"""
        if self.timings is None:
            return {}
        return self.timings.get_summary()

    def print_timing_summary(self, title: str = "Orb Render Timing Summary"):
        """Print formatted timing summary

        Args:
            title: Header title for the summary
        """
        if self.timings is None:
            print(f"{title}: Timing disabled")
            return

        summary = self.timings.get_summary()
        if not summary:
            print(f"{title}: No timing data collected")
            return

        print(f"\n{'='*70}")
        print(f"{title}")
        print(f"{'='*70}")
        print(f"{'Operation':<35} {'Total (ms)':>12} {'Avg (ms)':>12} {'Count':>8}")
        print(f"{'-'*70}")

        sorted_ops = sorted(summary.items(), key=lambda x: x[1]['total_ms'], reverse=True)
        for op_name, stats in sorted_ops:
            print(f"{op_name:<35} {stats['total_ms']:>12.3f} {stats['avg_ms']:>12.4f} {stats['count']:>8}")

        print(f"{'='*70}\n")

    def cleanup(self):
        """Release GPU resources

        Side effects:
        - Frees GPU memory for meshes, particle buffers and framebuffer
        - Destroys OpenGL context
        """
        for vao in [self.orb_vao, self.glow_vao, *self.ring_vaos]:
            vao.release()
        if self.particle_vao is not None:
            self.particle_vao.release()
        for buffer in self._buffers + self.particle_vbos:
            buffer.release()

        self.fbo.release()
        self.color_buffer.release()
        self.depth_buffer.release()
        self.ctx.release()

    def __enter__(self):
        """Context manager support"""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager cleanup"""
        self.cleanup()


# ============================================================================
# GPU Rendering Operations
# ============================================================================

def render_halo(renderer: OrbRenderer, halo: HaloOrb) -> None:
    """Draw the current state of a HaloOrb into the renderer's framebuffer

    Side effects:
    - Uploads particle data when it changed
    - Sets uniforms and blend state
    - Executes one draw call per element

    Args:
        renderer: Renderer owning the GPU context
        halo: Orb whose frame_state() is drawn
    """
    ctx = renderer.ctx
    state = halo.frame_state()
    group_view = renderer.view @ group_rotation_matrix(state.group_rotation)

    with time_operation(renderer.timings, 'render_halo_total'):
        renderer.upload_particles(halo)

        renderer.fbo.use()
        renderer.fbo.clear(*state.background_color, 1.0, depth=1.0)

        # Glow shell: back faces only, never occludes
        with time_operation(renderer.timings, 'glow'):
            ctx.disable(moderngl.DEPTH_TEST)
            ctx.enable(moderngl.CULL_FACE)
            ctx.front_face = 'ccw'
            ctx.cull_face = 'front'
            ctx.blend_func = moderngl.SRC_ALPHA, moderngl.ONE
            prog = renderer.glow_prog
            _set_uniform(prog, 'u_model_view', group_view)
            _set_uniform(prog, 'u_time', float(state.glow['time']))
            _set_uniform(prog, 'u_glow_color', tuple(state.glow['glow_color']))
            _set_uniform(prog, 'u_glow_intensity', float(state.glow['glow_intensity']))
            renderer.glow_vao.render(moderngl.TRIANGLES)
            ctx.disable(moderngl.CULL_FACE)

        # Orb body: both sides, normal alpha blending
        with time_operation(renderer.timings, 'orb'):
            ctx.enable(moderngl.DEPTH_TEST)
            renderer.fbo.depth_mask = True
            ctx.blend_func = moderngl.SRC_ALPHA, moderngl.ONE_MINUS_SRC_ALPHA
            rotation_x, rotation_y_angle = state.orb_rotation
            prog = renderer.orb_prog
            _set_uniform(prog, 'u_model_view', group_view @ euler_xyz(rotation_x, rotation_y_angle, 0.0))
            _set_uniform(prog, 'u_time', float(state.orb['time']))
            _set_uniform(prog, 'u_pulse_intensity', float(state.orb['pulse_intensity']))
            _set_uniform(prog, 'u_primary_color', tuple(state.orb['primary_color']))
            _set_uniform(prog, 'u_secondary_color', tuple(state.orb['secondary_color']))
            renderer.orb_vao.render(moderngl.TRIANGLES)

        # Rings: additive bands
        with time_operation(renderer.timings, 'rings'):
            renderer.fbo.depth_mask = False
            ctx.blend_func = moderngl.SRC_ALPHA, moderngl.ONE
            prog = renderer.ring_prog
            for vao, uniforms, transform in zip(renderer.ring_vaos, state.rings, state.ring_transforms):
                _set_uniform(prog, 'u_model_view', group_view @ transform.matrix)
                _set_uniform(prog, 'u_angle', float(uniforms['angle']))
                _set_uniform(prog, 'u_time', float(uniforms['time']))
                _set_uniform(prog, 'u_ring_color', tuple(uniforms['ring_color']))
                _set_uniform(prog, 'u_opacity', float(uniforms['opacity']))
                vao.render(moderngl.TRIANGLES)

        # Particles: additive sprites on top of everything
        with time_operation(renderer.timings, 'particles'):
            ctx.disable(moderngl.DEPTH_TEST)
            prog = renderer.particle_prog
            _set_uniform(prog, 'u_model_view', group_view)
            _set_uniform(prog, 'u_time', float(state.time))
            _set_uniform(prog, 'u_intensity', float(state.particle_intensity))
            renderer.particle_vao.render(moderngl.POINTS, vertices=state.particles.count)

        renderer.fbo.depth_mask = True


def read_framebuffer(renderer: OrbRenderer) -> np.ndarray:
    """Read current framebuffer contents (synchronous)

    Side effects:
    - Reads from GPU memory

    Returns:
        RGB numpy array (height, width, 3)
    """
    with time_operation(renderer.timings, 'read_framebuffer'):
        raw = renderer.fbo.read(components=3)
        img = np.frombuffer(raw, dtype='u1').reshape((renderer.height, renderer.width, 3))

        # Flip vertically (OpenGL origin is bottom-left, images are top-left)
        return np.flip(img, axis=0).copy()


def save_frame(renderer: OrbRenderer, filepath: str) -> None:
    """Save current framebuffer to image file

    Side effects:
    - Reads from GPU
    - Writes to filesystem
    """
    Image.fromarray(read_framebuffer(renderer)).save(filepath)


# ============================================================================
# High-Level Rendering Functions
# ============================================================================

def render_halo_to_file(
    halo: HaloOrb,
    output_path: str,
    width: int = 800,
    height: int = 600
) -> None:
    """Render the orb's current frame and save it

    Side effects:
    - Creates and destroys a GPU context
    - Writes to filesystem
    """
    with OrbRenderer(width, height, config=halo.config) as renderer:
        render_halo(renderer, halo)
        save_frame(renderer, output_path)


def render_frames_to_array(
    halo: HaloOrb,
    frame_count: int,
    dt: float = 1.0 / 60.0,
    width: int = 800,
    height: int = 600
) -> List[np.ndarray]:
    """Advance and render the orb frame by frame

    Reuses one GPU context across frames. The orb is updated before each
    frame is drawn.

    Returns:
        List of RGB numpy arrays, one per frame
    """
    results = []

    with OrbRenderer(width, height, config=halo.config) as renderer:
        for _ in range(frame_count):
            halo.update(dt)
            render_halo(renderer, halo)
            results.append(read_framebuffer(renderer))

    return results
