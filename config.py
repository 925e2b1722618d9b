"""Application configuration."""

from dataclasses import dataclass

# Sample rates
PPG_SAMPLE_RATE_HZ = 50.0
ACCEL_SAMPLE_RATE_HZ = 100.0

# Frame format: Red, IR, Green (uint32) + AccelX, AccelY, AccelZ (int16)
FRAME_FORMAT = '<IIIhhh'
FRAME_SIZE = 18
OPTICAL_SATURATION = 0x7FFFFFFF  # Optical counts are held as signed 32-bit
ACCEL_COUNTS_PER_G = 16384.0
GRAVITY_G = 1.0

# Heart rate band-pass
HR_BANDPASS_LOW_HZ = 0.5
HR_BANDPASS_HIGH_HZ = 8.0
HR_BANDPASS_ORDER = 4

# Heart rate extraction
MIN_HEART_RATE = 40
MAX_HEART_RATE = 180
MIN_PEAK_DISTANCE_SECONDS = 0.4
PEAK_PROMINENCE_MULTIPLIER = 0.5
FLAT_SIGNAL_STD = 1.0
HR_BUFFER_SECONDS = 10.0
HR_MIN_BUFFER_SECONDS = 3.0

# SpO2
MOTION_STABILITY_THRESHOLD_G = 1.05
SPO2_BUFFER_CAPACITY = 2000
SPO2_MIN_SAMPLES = 150
SPO2_MIN_PERCENT = 70.0
SPO2_MAX_PERCENT = 100.0

# Motion compensation (NLMS)
MOTION_FILTER_TAPS = 8
MOTION_FILTER_STEP = 0.05
MOTION_VARIANCE_THRESHOLD = 1.0
MOTION_NOISE_FLOOR_G = 0.02  # Dynamic acceleration below this on every tap counts as still

# Activity classification
ACTIVITY_HISTORY_SIZE = 32
ACTIVITY_MOTION_THRESHOLD_G = 1.15
ACTIVITY_DEVIATION_THRESHOLD = 5000.0
ACTIVITY_GRINDING_VARIANCE = 1000.0

# Signal quality (perfusion index = IR peak-to-peak / mean)
PERFUSION_WEAK = 0.0005
PERFUSION_MODERATE = 0.002
PERFUSION_STRONG = 0.005

# Runtime queues
RAW_QUEUE_SIZE = 2048
RESULT_QUEUE_SIZE = 512


@dataclass
class VitalsConfig:
    """Construction-time configuration for one device session."""

    ppg_sample_rate: float = PPG_SAMPLE_RATE_HZ
    accel_sample_rate: float = ACCEL_SAMPLE_RATE_HZ
    hr_bandpass_low: float = HR_BANDPASS_LOW_HZ
    hr_bandpass_high: float = HR_BANDPASS_HIGH_HZ
    hr_bandpass_order: int = HR_BANDPASS_ORDER
    min_heart_rate: int = MIN_HEART_RATE
    max_heart_rate: int = MAX_HEART_RATE
    min_peak_distance_seconds: float = MIN_PEAK_DISTANCE_SECONDS
    peak_prominence_multiplier: float = PEAK_PROMINENCE_MULTIPLIER
    motion_stability_threshold: float = MOTION_STABILITY_THRESHOLD_G
    spo2_buffer_capacity: int = SPO2_BUFFER_CAPACITY
    hr_buffer_seconds: float = HR_BUFFER_SECONDS
    hr_min_buffer_seconds: float = HR_MIN_BUFFER_SECONDS

    @property
    def hr_buffer_capacity(self) -> int:
        return max(1, int(round(self.hr_buffer_seconds * self.ppg_sample_rate)))

    @property
    def hr_min_samples(self) -> int:
        return max(1, int(round(self.hr_min_buffer_seconds * self.ppg_sample_rate)))

    def validate(self) -> 'VitalsConfig':
        """Raise ValueError on settings the pipeline cannot run with."""
        if self.ppg_sample_rate <= 0.0 or self.accel_sample_rate <= 0.0:
            raise ValueError("sample rates must be positive")
        if not 0 < self.min_heart_rate < self.max_heart_rate:
            raise ValueError("heart rate bounds must satisfy 0 < min < max")
        if self.spo2_buffer_capacity < 1:
            raise ValueError("spo2_buffer_capacity must be >= 1")
        if self.hr_buffer_seconds <= 0.0 or self.hr_min_buffer_seconds <= 0.0:
            raise ValueError("heart rate buffer lengths must be positive")
        if self.hr_min_buffer_seconds > self.hr_buffer_seconds:
            raise ValueError("hr_min_buffer_seconds cannot exceed hr_buffer_seconds")
        if self.min_peak_distance_seconds < 0.0 or self.peak_prominence_multiplier < 0.0:
            raise ValueError("peak constraints must be non-negative")
        return self
