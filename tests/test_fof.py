from rockfind.fof import FofBuilder, FofGroup, partition_sort_particles


def _names():
    return ["a", "b", "c", "d", "e"]


def test_partition_sort_orders_assignments_and_keeps_pairs():
    particles = _names()
    assignments = [3, -1, 1, 3, 0]
    pairs = sorted(zip(particles, assignments))
    partition_sort_particles(particles, assignments, 0, len(particles))
    assert assignments == sorted(assignments)
    assert sorted(zip(particles, assignments)) == pairs


def test_partition_sort_respects_range():
    particles = _names()
    assignments = [9, 5, 2, 7, -4]
    partition_sort_particles(particles, assignments, 1, 4)
    assert assignments[0] == 9 and particles[0] == "a"
    assert assignments[4] == -4 and particles[4] == "e"
    assert assignments[1:4] == sorted([5, 2, 7])


def _group_sets(groups):
    return sorted(sorted(g.particles) for g in groups)


def test_link_and_build_groups():
    builder = FofBuilder(_names())
    builder.link_particle_to_fof(0, [0, 1, 2])
    builder.link_particle_to_fof(3, [3, 4])
    groups = builder.build_fullfofs(2)
    assert _group_sets(groups) == [["a", "b", "c"], ["d", "e"]]
    for g in groups:
        assert builder.particles[g.start:g.start + g.num_p] == g.particles


def test_linking_merges_groups():
    builder = FofBuilder(_names())
    builder.link_particle_to_fof(0, [0, 1, 2])
    builder.link_particle_to_fof(3, [3, 4])
    builder.link_particle_to_fof(2, [2, 3])
    groups = builder.build_fullfofs(2)
    assert _group_sets(groups) == [sorted(_names())]


def test_single_link_is_ignored():
    builder = FofBuilder(_names())
    builder.link_particle_to_fof(0, [0])
    assert builder.build_fullfofs(1) == []


def test_small_groups_dropped_last():
    builder = FofBuilder(_names())
    builder.link_particle_to_fof(0, [0, 1, 2])
    builder.link_particle_to_fof(3, [3, 4])
    groups = builder.build_fullfofs(3)
    assert _group_sets(groups) == [["a", "b", "c"]]


def test_small_groups_dropped_first():
    builder = FofBuilder(_names())
    builder.link_particle_to_fof(0, [0, 1])
    builder.link_particle_to_fof(2, [2, 3, 4])
    groups = builder.build_fullfofs(3)
    assert _group_sets(groups) == [["c", "d", "e"]]


def test_link_fof_to_fof():
    builder = FofBuilder(_names())
    builder.link_particle_to_fof(0, [0, 1])
    builder.link_particle_to_fof(2, [2, 3])
    builder.link_fof_to_fof(4, [4, 0])
    builder.link_fof_to_fof(1, [1, 2])
    groups = builder.build_fullfofs(2)
    assert _group_sets(groups) == [["a", "b", "c", "d"]]


def test_tag_untagged_particles():
    builder = FofBuilder(_names())
    assert builder.tag_boundary_particle(0) == 0
    assert builder.tag_boundary_particle(1) == 1
    assert builder.tag_boundary_particle(0) == 0
    assert builder.num_boundary_fofs == 2


def test_boundary_groups_are_kept():
    builder = FofBuilder(_names())
    builder.link_particle_to_fof(0, [0, 1])
    first = builder.tag_boundary_particle(0)
    assert builder.tag_boundary_particle(1) == first
    builder.build_fullfofs(10)
    groups, num_boundary = builder.return_fullfofs()
    assert num_boundary == 1
    assert _group_sets(groups) == [["a", "b"]]
    assert builder.return_fullfofs() == ([], 0)


def test_copy_fullfofs_appends_and_clears():
    builder = FofBuilder(_names())
    builder.link_particle_to_fof(0, [0, 1, 2])
    built = builder.build_fullfofs(2)
    base = [FofGroup(start=0, num_p=0)]
    combined = builder.copy_fullfofs(base)
    assert combined == base + built
    assert len(base) == 1
    assert builder.return_fullfofs() == ([], 0)