"""Global constants for the separation tool."""

# Audio processing defaults
SAMPLE_RATE = 32000
CLIP_SAMPLES = 320_000  # 10 seconds @ 32kHz
OVERLAP_RATE = 0.5
STEP_SAMPLES = int(CLIP_SAMPLES * (1 - OVERLAP_RATE))

# Model I/O
LATENT_DIM = 2048
LATENT_OUTPUT_KEY = "latent_output"

# WAV writer limits
MAX_SAMPLE_RATE = 192_000
MAX_CHANNELS = 64
COMMON_SAMPLE_RATES = (8000, 11025, 16000, 22050, 32000, 44100, 48000, 88200, 96000, 176400, 192000)

# Output layout (relative to the output root)
OUTPUT_FEATURES_DIR = "output_features"
SEPARATED_RESULT_DIR = "separated_results"

FEATURE_EXTENSION = ".txt"
WAV_EXTENSION = ".wav"
TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"

# Default model files (relative to the working directory)
EXTRACTOR_MODEL_FILE = "models/htsat_embedding_model.pt"
SEPARATOR_MODEL_FILE = "models/zero_shot_asp_separation_model.pt"
