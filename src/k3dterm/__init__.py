"""k3dterm - manage local k3s clusters through k3d from the terminal."""
