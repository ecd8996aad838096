import json
import numbers


class Params:
    """
    All tunable knobs live here so you don't hunt through code.

    Distances are surface pixels, particle speeds are pixels per tick,
    timers are seconds. Every numeric knob must be positive.
    """
    def __init__(self, **overrides):
        # Particle count (compact = phones / small screens)
        self.particle_count_desktop = 120
        self.particle_count_compact = 60
        self.compact = False

        # Proximity graph
        self.connection_distance = 140.0
        self.pointer_link_distance = 250.0
        self.edge_alpha = 0.15
        self.pointer_edge_alpha = 0.2

        # Particle motion
        self.base_velocity = 0.8
        self.interaction_radius = 250.0
        self.swirl_offset = 0.8         # radians added to the approach angle
        self.swirl_strength = 0.5
        self.max_speed_factor = 8.0     # normal ceiling = base_velocity * factor
        self.gather_max_speed = 20.0
        self.floor_factor = 0.5         # floor = base_velocity * factor
        self.floor_boost = 1.05
        self.damping_factor = 0.9       # applied when over the ceiling

        # Post-burst settling
        self.settle_damping = 0.95
        self.settle_speed_factor = 2.0  # settle threshold = base_velocity * factor

        # Gather / burst
        self.gather_strength = 0.5
        self.gather_drag = 0.9
        self.impulse_strength = 15.0
        self.impulse_gain = 100.0
        self.impulse_max_power = 50.0

        # Pointer fusion
        self.smoothing_factor = 0.2
        self.activity_timeout = 2.0
        self.pinch_threshold = 0.05           # thumb-index distance, normalized
        self.pinch_release_threshold = 0.05   # raise for hysteresis
        self.touch_grace = 0.1

        # Interactive nodes
        self.node_base_radius = 12.0
        self.node_hover_radius = 25.0
        self.node_hover_margin = 38.0
        self.node_hit_radius = 60.0
        self.node_radius_smoothing = 0.1
        self.node_max_speed = 0.6
        self.node_steer_strength = 0.02
        self.node_wobble = 0.01
        self.node_wobble_freq = 1.3
        self.node_damping = 0.98
        self.node_edge_loss = 0.6
        self.node_wander_min = 2.0
        self.node_wander_max = 4.0
        self.node_pointer_radius = 150.0
        self.node_pointer_pull = 0.015  # toward the pointer unless node_pointer_repel
        self.node_pointer_repel = False
        self.node_intro_base_delay = 0.5
        self.node_intro_stagger = 0.2
        self.node_intro_duration = 0.8
        self.node_margin = 100.0

        # Clock
        self.frame_dt = 1.0 / 60.0
        self.seed = None

        for key, value in overrides.items():
            if not hasattr(self, key):
                raise KeyError(f"unknown param: {key}")
            setattr(self, key, value)

    @classmethod
    def from_dict(cls, d):
        return cls(**dict(d or {}))

    @classmethod
    def from_json(cls, path):
        with open(path, "r", encoding="utf-8") as f:
            return cls.from_dict(json.load(f))

    def validate(self):
        for key, value in vars(self).items():
            # seed is an rng input, not a knob; 0 is a valid seed
            if key == "seed" or isinstance(value, bool) or value is None:
                continue
            if isinstance(value, numbers.Real) and value <= 0:
                raise ValueError(f"param {key} must be positive, got {value!r}")
        if self.node_wander_min > self.node_wander_max:
            raise ValueError("node_wander_min must not exceed node_wander_max")
        if self.node_hover_radius < self.node_base_radius:
            raise ValueError("node_hover_radius must be >= node_base_radius")
        return self

    # ---- derived ----
    @property
    def particle_count(self):
        return int(self.particle_count_compact if self.compact else self.particle_count_desktop)

    @property
    def max_speed(self):
        return self.base_velocity * self.max_speed_factor

    @property
    def floor_speed(self):
        return self.base_velocity * self.floor_factor

    @property
    def settle_speed(self):
        return self.base_velocity * self.settle_speed_factor

    @property
    def settle_ceiling(self):
        return self.impulse_max_power + self.max_speed
