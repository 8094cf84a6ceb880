# contactqp

Tools for reasoning about contacts in non-prehensile manipulation: a small
dense solver for strictly convex quadratic programs, and a contact model that
classifies simulator contacts and decides their contact-state and
sticking/sliding modes from body twists.

## Installation

```
pip install .
```

Only `numpy` is required.

## Modules

### `contactqp.quadprog`

`solve_quadprog(G, g0, CE, ce0, CI, ci0)` minimises `0.5 x^T G x + g0^T x`
subject to `CE^T x + ce0 = 0` and `CI^T x + ci0 >= 0` with the Goldfarb–Idnani
dual method. `G` is `(n, n)` and must be positive definite (only its lower
triangle is read), `CE` is `(n, p)` and `CI` is `(n, m)`. The inputs are not
modified.

It returns a `QPSolution` with the fields `x`, `cost`, `active_inequalities`
(indices of the columns of `CI` active at the solution), `iterations` and
`degenerate` (true when the equality constraints were found to be linearly
dependent; the solver then stops early). It raises `InfeasibleProblemError`
(a `ValueError`) when the problem has no feasible point, and `ValueError` for
mis-shaped inputs or a `G` that is not positive definite.

```python
import numpy as np
from contactqp.quadprog import solve_quadprog

G = np.array([[2.1, 0.0, 1.0], [1.5, 2.2, 0.0], [1.2, 1.3, 3.1]])
g0 = np.array([6.0, 1.0, 1.0])
CE = np.array([[1.0], [2.0], [-1.0]])
ce0 = np.array([-4.0])
CI = np.array([[1.0, 0.0, 0.0, -1.0],
               [0.0, 1.0, 0.0, -1.0],
               [0.0, 0.0, 1.0, 0.0]])
ci0 = np.array([0.0, 0.0, 0.0, 10.0])

solution = solve_quadprog(G, g0, CE, ce0, CI, ci0)
print(solution.x, solution.cost, solution.active_inequalities)
```

### `contactqp.contact`

- `BodyType` (`ROBOT`, `OBJECT`, `ENV`, `EE_POSE`, `EE_POSITION`) and
  `RobotType` (`NONE`, `ROBOT`, `EE_POSE`, `EE_POSITION`).
- `RawContact` holds a contact as a simulator reports it: body ids, root ids,
  body and root names, position, and a row-major 3x3 frame whose first row is
  the normal.
- `Contact` is a classified contact. Its `frame` has the contact axes as
  columns with the normal (body 1 towards body 2) as the z-axis; `transform`
  is the matching 4x4 pose. `Contact.from_raw_frame(...)` builds one from a
  raw frame.
- `collect_contacts(raw_contacts)` classifies contacts by root name: roots
  containing `object` are objects (index taken from `object_<i>` body names),
  `workspace` and `world` are environment, anything else is a robot link.
  Friction is `TABLE_FRICTION` for the workspace, `EE_FRICTION` for robot
  bodies, `DEFAULT_FRICTION` otherwise.
- `collect_focused_contacts(raw_contacts, obj_root_ids, robot_type)` keeps only
  the objects whose root id is given (others count as environment) and drops
  contacts with a robot representation (`ee_pose`, `ee_position`, or a robot
  link) other than `robot_type`.
- `ang_to_ss_mode(ang, n_ss_mode)` maps a tangential velocity angle to a
  sliding mode over `n_ss_mode` tangent axes, axis `i` pointing at
  `pi * i / n_ss_mode`.
- `vel_to_contact_mode(contact, twist1, twist2, n_ss_mode)` returns
  `(cs_mode, ss_mode)` from spatial twists `(v, omega)`: object–environment
  contacts are in contact with a sliding mode from the relative velocity;
  robot or end-effector contacts with an object are in contact and sticking;
  all others are `NOT_IN_CONTACT`.
- `vel_to_contact_modes(contacts, twists, n_ss_mode)` does the same for a list
  of contacts, with `twists` keyed by body id; missing bodies are at rest.

```python
from contactqp.contact import ang_to_ss_mode

ang_to_ss_mode(0.5, 2)  # [1, 1]
```

## What the package does not do

It does not talk to a simulator: contacts are passed in as `RawContact`
records. It does not turn contacts and modes into the equality and inequality
matrices of a planning problem, nor assemble force and torque balance or a
velocity-tracking objective; building `G`, `CE` and `CI` for
`solve_quadprog` is left to the caller. There is no command-line program.

## Tests

```
pip install .[test]
pytest
```