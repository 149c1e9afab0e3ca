"""Material point method building blocks: containers, boundary objects, Cam-Clay return mapping, remeshing, time stepping and PLY output."""

__version__ = "0.1.0"