# rockfind

Pure-Python building blocks for finding dark-matter halos in cosmological
simulation snapshots. No third-party dependencies.

## Modules

### `rockfind.fast3tree`

`Fast3Tree(points, dim=3)` is a binary space-partitioning tree. Points may be
plain coordinate sequences or objects with a `pos` attribute. The tree keeps
its own reordered list in `tree.points` (coordinates in `tree.positions`), and
every query returns **indices** into that list.

- `find_sphere(center, r)` — points strictly closer than `r`.
- `find_sphere_skip(index, r)` — neighbours of point `index`, skipping nodes
  that lie wholly before it, so each close pair is found from one side only.
- `find_inside_of_box(box)` / `find_outside_of_box(box)` — `box` is the lower
  corner followed by the upper corner.
- `rebuild(points)` builds the tree anew; points with non-finite coordinates
  are moved to the end of `tree.points` and left out (`tree.num_points`
  counts the ones kept).
- `maxmin_rebuild()` recomputes node bounds after points have moved, keeping
  the structure; `set_minmax(lo, hi)` sets the root bounds in every dimension.

Nodes are `TreeNode` dataclasses reachable from `tree.root`.

### `rockfind.tree_periodic`

Queries on a `Fast3Tree` that wrap around the extent of its root box:

- `find_sphere_periodic(tree, center, r)` — raises `ValueError` if the sphere
  is wider than half the box in any dimension.
- `find_sphere_marked(tree, center, r, periodic, do_marking)` — a node already
  marked contributes at most one point; with `do_marking`, nodes found wholly
  inside the sphere are marked.
- `find_next_closest_distance(tree, center)` — distance to the nearest point
  at a non-zero distance.

### `rockfind.fof`

`FofBuilder(particles)` links particles, given by index, into
friends-of-friends groups with a union-find forest:

- `link_particle_to_fof(p, links)` and `link_fof_to_fof(p, links)`;
- `tag_boundary_particle(p)` marks the group of `p` as touching the region
  boundary and returns its boundary index;
- `build_fullfofs(min_halo_particles)` sorts the particle list in place by
  group and returns the new `FofGroup`s (each with `start`, `num_p` and
  `particles`); groups below the minimum are dropped unless they are boundary
  groups;
- `return_fullfofs()` returns `(groups, num_boundary_fofs)` and resets;
- `copy_fullfofs(base)` returns `base` followed by the built groups, then
  clears them.

`partition_sort_particles(particles, assignments, lo, hi)` sorts a slice of
particles by their group assignment.

### `rockfind.distance`

`Cosmology(h, hubble_scaling)` tabulates the comoving-distance integral out to
redshift 300 from a function `hubble_scaling(z) = H(z)/H0` (building the table
takes a moment). It provides comoving, transverse, angular-diameter and
luminosity distances, the comoving volume and volume element, and inversions
`comoving_distance_to_redshift`, `comoving_volume_to_redshift` and
`comoving_distance_h_to_redshift`. Distances are in Mpc unless the method name
ends in `_h`. `redshift(a)` and `scale_factor(z)` convert between the two.

### `rockfind.bounds`

Bounds are six numbers: lower corner then upper corner.

- `check_bounds(pos, bounds, box_size, periodic)` — the position shifted by
  one box length where needed to fall inside, or `None`.
- `check_bounds_raw(pos, bounds)` — membership in the half-open box.
- `bounds_overlap(b1, b2, overlap, box_size, periodic)` — `b2` grown by
  `overlap` if it overlaps `b1`, else `None`.
- `wrap_into_box(pos, box_size, periodic)` — brings a position lying up to one
  box length outside back inside.

### `rockfind.config`

`Config` is a dataclass of every run option with its default; attribute names
are the option names in lower case (`box_size`, `om`, `min_halo_particles`, …).

- `Config.from_mapping(values)` builds one from option names as written in a
  config file (`"BOX_SIZE"`, `"Om"`, …); unknown names give a warning and are
  ignored, bad values raise `ValueError`.
- `setup(critical_density)` fills in derived values (reader count, particle
  mass, mean particle spacing, force resolution limit), turns off periodicity
  and temporal halo finding where other options require it, raises the
  process's open-file and core-size limits where the platform allows, and
  warns if no snapshots would be processed.
- `to_text()` renders every option as `NAME = value` lines;
  `output_config(config, filename=None)` writes them to
  `<outbase>/<filename or rockstar.cfg>` and returns the path.

### `rockfind.checked_io`

Helpers that raise `CheckedIOError` (an `OSError`) with a descriptive message:
`check_open`, `check_mmap_file(filename, "r" | "w")`, the context manager
`rw_socket(command)`, which runs a shell command with its stdin and stdout
joined to one stream and kills it on exit, and `CheckedReader`, which reads
exact byte counts, skips bytes on pipes, reads lines and allows one `unread`.

## Example

```python
from rockfind.fast3tree import Fast3Tree
from rockfind.bounds import wrap_into_box

class Point:
    def __init__(self, x, y, z):
        self.pos = [x, y, z]

points = [Point(i * 0.1, 0.0, 0.0) for i in range(100)]
tree = Fast3Tree(points, 3)
near = [tree.points[i] for i in tree.find_sphere([1.0, 0.0, 0.0], 0.25)]

print(wrap_into_box([251.0, -1.0, 10.0], 250.0, True))  # (1.0, 249.0, 10.0)
```

## What this package does not do

It is a library of parts, not a complete halo finder. There is no command to
run, no reader for config files (`Config.from_mapping` takes values already
parsed), no readers or writers for snapshot or catalogue formats, no halo
property, merger-tree or unbinding calculations, and no distributed or
networked mode.

## Tests

```
pip install -e ".[test]"
pytest
```