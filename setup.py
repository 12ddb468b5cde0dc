from setuptools import setup, find_packages

setup(
  name="hrvpy",
  version="0.1.0",
  description="Heart rate variability from camera brightness signals",
  license="MIT",
  packages=find_packages(include=["hrvpy", "hrvpy.*"]),
  python_requires=">=3.8",
  install_requires=[
    "numpy",
    "scipy",
  ],
  extras_require={
    "ffmpeg": ["ffmpeg-python"],
    "test": ["pytest", "ffmpeg-python"],
  },
)
