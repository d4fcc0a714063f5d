"""
Demonstration of the waveshaper on a synthetic plucked tone.

This example shows:
1. Loading factory presets
2. Offline processing of a stereo signal
3. Analyzing harmonic content
4. Plotting transfer curves
"""

import numpy as np
import matplotlib.pyplot as plt
import soundfile as sf

from waveshaper import CurveType, DistortionParams, InstanceManager, load_preset, transfer_curve
from waveshaper.analysis import harmonic_levels, total_harmonic_distortion


def plucked_tone(f0: float = 110.0, fs: int = 48000, duration: float = 2.0) -> np.ndarray:
    """Decaying harmonic-rich tone, stereo with a slight detune."""
    t = np.arange(int(fs * duration)) / fs
    envelope = np.exp(-t * 2.5)
    left = sum(np.sin(2 * np.pi * k * f0 * t) / k for k in range(1, 6))
    right = sum(np.sin(2 * np.pi * k * f0 * 1.003 * t) / k for k in range(1, 6))
    x = np.stack([left, right], axis=1) * envelope[:, np.newaxis]
    return 0.8 * x / np.max(np.abs(x))


def compare_presets(x: np.ndarray, fs: int):
    print("=" * 60)
    print("Preset comparison (1 kHz tone, THD)")
    print("=" * 60)

    t = np.arange(fs) / fs
    tone = 0.5 * np.sin(2 * np.pi * 1000 * t)

    for name in ["Fuzz Box", "Valve Overdrive", "3rd Harmonic (Perfect Fifth)", "Full-wave Rectifier"]:
        mgr = InstanceManager(load_preset(name), sample_rate=fs)
        y_tone = mgr.process(tone)
        levels = harmonic_levels(y_tone, fs, 1000, num_harmonics=5)
        thd = total_harmonic_distortion(y_tone, fs, 1000)
        print(f"{name:35s} THD={100 * thd:7.2f}%  H2={levels[2]:6.1f} dB  H3={levels[3]:6.1f} dB")

        y = mgr.process(x)
        filename = name.lower().replace(" ", "_").replace("(", "").replace(")", "") + ".wav"
        sf.write(filename, y, fs)
        print(f"  wrote {filename}")


def plot_transfer_curves():
    fig, axes = plt.subplots(3, 4, figsize=(14, 10))
    for ax, curve in zip(axes.flat, CurveType):
        x, y = transfer_curve(DistortionParams(curve_type=curve, threshold_db=-12.0, param1=60.0))
        ax.plot(x, y)
        ax.plot(x, x, "k:", linewidth=0.5)
        ax.set_title(curve.label, fontsize=9)
        ax.grid(True, alpha=0.3)
    axes.flat[-1].axis("off")
    fig.tight_layout()
    fig.savefig("transfer_curves.png", dpi=120)
    print("Saved transfer_curves.png")


if __name__ == "__main__":
    fs = 48000
    x = plucked_tone(fs=fs)
    sf.write("dry.wav", x, fs)

    compare_presets(x, fs)
    plot_transfer_curves()
