"""Range-image layouts and projections, cluster outlines and packed point-buffer decoding for LiDAR clouds."""

__version__ = "0.1.0"
__all__ = ["projection_params", "cloud_projection", "outlines", "pointcloud2"]