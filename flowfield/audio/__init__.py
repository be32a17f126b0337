# Background music playback and loudness analysis
from .backends import NullAudioBackend, PreparedTrack, PygameMixerBackend, create_backend, decode_track
from .power import PowerSmoother, loudness_envelope, sample_envelope, synthetic_power
from .transport import AudioTransport, PlayRequest, TransportState
