"""
Halo Orb Shaders

GLSL sources for the orb, particle sprites, rings and glow shell.
Every per-frame value arrives through uniforms; the formulas mirror the
reference functions in core.py.
"""

# Core orb: organic wobble + pulse displacement along the normal
ORB_VERTEX_SHADER = """
#version 330

in vec3 in_position;
in vec3 in_normal;

uniform mat4 u_projection;
uniform mat4 u_model_view;
uniform float u_time;
uniform float u_pulse_intensity;

out vec3 v_normal;
out vec3 v_position;

void main() {
    v_normal = normalize(mat3(u_model_view) * in_normal);

    vec3 pos = in_position;
    pos += in_normal * sin(u_time * 2.0 + in_position.x * 5.0) * 0.012;
    pos += in_normal * sin(u_time * 3.0 + in_position.y * 4.0) * 0.008;
    pos += in_normal * u_pulse_intensity * 0.1;

    v_position = pos;
    gl_Position = u_projection * u_model_view * vec4(pos, 1.0);
}
"""

# Core orb: animated primary/secondary mix, rim boost, pulse tint
ORB_FRAGMENT_SHADER = """
#version 330

in vec3 v_normal;
in vec3 v_position;

out vec4 f_color;

uniform float u_time;
uniform vec3 u_primary_color;
uniform vec3 u_secondary_color;
uniform float u_pulse_intensity;

void main() {
    float fresnel = pow(max(1.0 - dot(v_normal, vec3(0.0, 0.0, 1.0)), 0.0), 2.0);

    float pattern1 = sin(u_time * 2.0 + v_position.x * 10.0) * 0.5 + 0.5;
    float pattern2 = sin(u_time * 1.5 + v_position.y * 8.0) * 0.5 + 0.5;
    float energy = pattern1 * pattern2;

    vec3 color = mix(u_primary_color, u_secondary_color, energy);
    color = mix(color, u_primary_color * 2.0, fresnel);
    color += u_primary_color * u_pulse_intensity * 0.5;

    f_color = vec4(color, 0.8 + fresnel * 0.2);
}
"""

# Particles: twinkling point sprites scaled by distance
PARTICLE_VERTEX_SHADER = """
#version 330

in vec3 in_position;
in vec3 in_color;
in float in_size;

uniform mat4 u_projection;
uniform mat4 u_model_view;
uniform float u_time;

out vec3 v_color;

void main() {
    vec4 mv_position = u_model_view * vec4(in_position, 1.0);

    float animated_size = in_size * (1.0 + sin(u_time * 3.0 + in_position.x + in_position.y) * 0.3);

    gl_PointSize = animated_size * (300.0 / max(-mv_position.z, 0.1));
    gl_Position = u_projection * mv_position;
    v_color = in_color;
}
"""

# Radial falloff: 1.0 at center, 0.8 at 30%, 0.0 at the edge
PARTICLE_FRAGMENT_SHADER = """
#version 330

in vec3 v_color;

out vec4 f_color;

uniform float u_intensity;

void main() {
    float d = length(gl_PointCoord - vec2(0.5)) * 2.0;
    if (d > 1.0) {
        discard;
    }

    float falloff = d < 0.3
        ? 1.0 - (d / 0.3) * 0.2
        : 0.8 * (1.0 - (d - 0.3) / 0.7);

    f_color = vec4(v_color, clamp(falloff * 0.8 * u_intensity, 0.0, 1.0));
}
"""

# Rings: time-derived rotation in the vertex stage, banded intensity
RING_VERTEX_SHADER = """
#version 330

in vec3 in_position;
in vec2 in_uv;

uniform mat4 u_projection;
uniform mat4 u_model_view;
uniform float u_angle;

out vec2 v_uv;

void main() {
    v_uv = in_uv;

    vec3 pos = in_position;
    pos.x = in_position.x * cos(u_angle) - in_position.z * sin(u_angle);
    pos.z = in_position.x * sin(u_angle) + in_position.z * cos(u_angle);

    gl_Position = u_projection * u_model_view * vec4(pos, 1.0);
}
"""

RING_FRAGMENT_SHADER = """
#version 330

in vec2 v_uv;

out vec4 f_color;

uniform vec3 u_ring_color;
uniform float u_opacity;
uniform float u_time;

void main() {
    float intensity = sin(u_time * 2.0 + v_uv.x * 10.0) * 0.3 + 0.7;
    f_color = vec4(u_ring_color * intensity, u_opacity);
}
"""

# Glow: back faces of a large shell, rim-weighted and breathing
GLOW_VERTEX_SHADER = """
#version 330

in vec3 in_position;
in vec3 in_normal;

uniform mat4 u_projection;
uniform mat4 u_model_view;

out vec3 v_normal;

void main() {
    v_normal = normalize(mat3(u_model_view) * in_normal);
    gl_Position = u_projection * u_model_view * vec4(in_position, 1.0);
}
"""

GLOW_FRAGMENT_SHADER = """
#version 330

in vec3 v_normal;

out vec4 f_color;

uniform vec3 u_glow_color;
uniform float u_glow_intensity;
uniform float u_time;

void main() {
    float intensity = pow(max(0.7 - dot(v_normal, vec3(0.0, 0.0, 1.0)), 0.0), 2.0);
    intensity *= sin(u_time * 2.0) * 0.2 + 0.8;
    f_color = vec4(u_glow_color, intensity * 0.3 * u_glow_intensity);
}
"""
