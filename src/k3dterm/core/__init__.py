"""Process tracking, progress adaptation and k3d invocation."""
