import warnings
import numpy as np
from PV_Shading_Model.cell import *

@dataclass(frozen=True)
class SegmentBypass:
    # one bypass diode across string positions start_index..end_index (inclusive)
    start_index: int
    end_index: int
    voltage_drop: float = 0.35

    def __post_init__(self):
        if self.start_index < 0 or self.end_index < 0:
            raise ValueError(f"Segment indices must be non-negative, got [{self.start_index}, {self.end_index}]")
        if self.start_index > self.end_index:
            raise ValueError(f"Segment start_index {self.start_index} is after end_index {self.end_index}")

    @property
    def num_cells(self):
        return self.end_index - self.start_index + 1

    def covers(self, index):
        return self.start_index <= index <= self.end_index

@dataclass
class StringSimResult:
    power: float = 0.0                  # W at MPP
    voltage: float = 0.0                # string V at MPP
    current: float = 0.0                # string I at MPP
    bypassed_cell_count: int = 0
    iv_trace: IVTrace = field(default_factory=IVTrace.dark)
    power_ideal: float = 0.0            # all cells in full sun
    segment_active: np.ndarray | None = None

    @classmethod
    def zero(cls, num_segments=None):
        result = cls()
        if num_segments is not None:
            result.segment_active = np.zeros(num_segments, dtype=bool)
        return result

    def __str__(self):
        return (f"String: P = {self.power:.3f} W at V = {self.voltage:.3f} V, I = {self.current:.3f} A, "
                f"{self.bypassed_cell_count} cells bypassed")

@dataclass
class CellOperatingState:
    is_bypassed: bool
    voltage: float      # cell V at the string operating point, -drop when bypassed
    current: float      # same as the string current

    @property
    def power(self):
        return self.voltage*self.current

def get_bypass_flags(has_bypass, num_cells):
    if has_bypass is None:
        return np.zeros(num_cells, dtype=bool)
    flags = np.asarray(has_bypass, dtype=bool).ravel()
    if flags.size != num_cells:
        warnings.warn(f"has_bypass has {flags.size} entries for {num_cells} cells, "
                      "missing entries are treated as having no bypass diode", RuntimeWarning)
        padded = np.zeros(num_cells, dtype=bool)
        n = min(num_cells, flags.size)
        padded[:n] = flags[:n]
        flags = padded
    return flags

def get_string_currents(cell_traces, num_points=None):
    if num_points is None:
        num_points = solver_env_variables["NUM_STRING_SAMPLES"]
    num_points = max(int(num_points), 2)
    max_I = max(trace.Isc for trace in cell_traces) # string can't exceed this
    return np.linspace(0.0, max_I, num_points)

def get_cell_V_matrix(cell_traces, currents):
    # rows are cells, columns are swept currents; -inf where the cell would be reverse biased
    cell_V = np.empty((len(cell_traces), currents.size))
    for i, trace in enumerate(cell_traces):
        cell_V[i,:] = np.where(currents < trace.Isc, interp_V(trace, currents), -np.inf)
    return cell_V

def finish_sweep(currents, string_V):
    voltages = np.maximum(string_V, 0.0)

    # stop at the first current the string can no longer sustain, keeping that sample (V=0)
    num_good = currents.size
    negative = np.flatnonzero(string_V < 0)
    if negative.size > 0:
        num_good = negative[0] + 1
    num_good = min(max(num_good, 2), currents.size)

    I = currents[:num_good]
    V = voltages[:num_good]
    power = I*V
    index = int(np.argmax(power))
    trace = IVTrace(IV_I=I[::-1], IV_V=V[::-1], Voc=V[0], Isc=I[-1], Vmp=V[index], Imp=I[index])
    return trace, index

def calc_string_IV(cell_traces, bypass_v_drop, has_bypass=None, num_points=None):
    num_cells = len(cell_traces)
    if num_cells == 0:
        return StringSimResult.zero()
    if max(trace.Isc for trace in cell_traces) <= 0:
        return StringSimResult.zero()
    has_bypass = get_bypass_flags(has_bypass, num_cells)

    currents = get_string_currents(cell_traces, num_points)
    node_V = np.zeros(currents.size) # string starts at ground
    for trace, bypass in zip(cell_traces, has_bypass):
        cell_V = np.where(currents < trace.Isc, interp_V(trace, currents), -np.inf)
        active_V = node_V + cell_V
        if bypass:
            # the diode conducts whenever clamping gives the higher node voltage
            node_V = np.maximum(active_V, node_V - bypass_v_drop)
        else:
            node_V = active_V

    trace, index = finish_sweep(currents, node_V)
    result = StringSimResult(power=trace.get_Pmax(), voltage=trace.Vmp, current=trace.Imp, iv_trace=trace)
    result.bypassed_cell_count = int(sum(1 for t, bypass in zip(cell_traces, has_bypass)
                                         if bypass and t.Isc <= result.current))
    return result

def get_segment_coverage(segments, num_cells):
    # covering segments of every cell, smallest first (ties keep list order)
    order = sorted(range(len(segments)), key=lambda k: segments[k].num_cells)
    cell_segments = [[] for _ in range(num_cells)]
    for k in order:
        segment = segments[k]
        if segment.start_index >= num_cells:
            warnings.warn(f"Segment {k} [{segment.start_index}, {segment.end_index}] lies outside "
                          f"a string of {num_cells} cells and is ignored", RuntimeWarning)
            continue
        for c in range(segment.start_index, min(segment.end_index, num_cells - 1) + 1):
            cell_segments[c].append(k)
    return cell_segments

def resolve_segments(cell_Isc, currents, cell_segments, num_segments):
    weak = cell_Isc[:,None] <= currents[None,:]

    # a weak cell switches on the finest diode that covers it
    active = np.zeros((num_segments, currents.size), dtype=bool)
    for c, covering in enumerate(cell_segments):
        if covering:
            active[covering[0]] |= weak[c]

    # each cell belongs to its smallest active covering segment, if any
    owner = np.full((len(cell_segments), currents.size), -1, dtype=int)
    for c, covering in enumerate(cell_segments):
        for k in reversed(covering):
            owner[c, active[k]] = k
    return active, owner

def calc_string_IV_with_segments(cell_traces, segments, num_points=None):
    num_cells = len(cell_traces)
    num_segments = len(segments)
    if num_cells == 0 or num_segments == 0:
        return StringSimResult.zero(num_segments), np.zeros(num_segments, dtype=bool)
    if max(trace.Isc for trace in cell_traces) <= 0:
        return StringSimResult.zero(num_segments), np.zeros(num_segments, dtype=bool)

    cell_segments = get_segment_coverage(segments, num_cells)
    currents = get_string_currents(cell_traces, num_points)
    cell_Isc = np.array([trace.Isc for trace in cell_traces])
    active, owner = resolve_segments(cell_Isc, currents, cell_segments, num_segments)
    bypassed = owner >= 0

    cell_V = get_cell_V_matrix(cell_traces, currents)
    drops = np.array([segment.voltage_drop for segment in segments])
    string_V = np.where(bypassed, 0.0, cell_V).sum(axis=0) - (drops[:,None]*active).sum(axis=0)

    trace, index = finish_sweep(currents, string_V)
    segment_active = active[:,index].copy()
    result = StringSimResult(power=trace.get_Pmax(), voltage=trace.Vmp, current=trace.Imp, iv_trace=trace,
                             bypassed_cell_count=int(np.count_nonzero(bypassed[:,index])),
                             segment_active=segment_active)
    return result, segment_active

def get_cell_operating_states(cell_traces, result, bypass_v_drop, has_bypass=None):
    has_bypass = get_bypass_flags(has_bypass, len(cell_traces))
    current = result.current
    states = []
    for trace, bypass in zip(cell_traces, has_bypass):
        if bypass and current >= trace.Isc:
            states.append(CellOperatingState(True, -bypass_v_drop, current))
        else:
            states.append(CellOperatingState(False, interp_V(trace, current), current))
    return states

def get_segment_cell_operating_states(cell_traces, segments, result):
    num_cells = len(cell_traces)
    if num_cells == 0:
        return []
    current = result.current
    cell_segments = get_segment_coverage(segments, num_cells)
    cell_Isc = np.array([trace.Isc for trace in cell_traces])
    _, owner = resolve_segments(cell_Isc, np.array([current]), cell_segments, len(segments))
    states = []
    for c, trace in enumerate(cell_traces):
        k = owner[c,0]
        if k >= 0:
            states.append(CellOperatingState(True, -segments[k].voltage_drop, current))
        else:
            states.append(CellOperatingState(False, interp_V(trace, current), current))
    return states

# quick estimate without IV traces, string current set by the weakest unprotected cell
def calc_string_power_simple(cell_currents, cell_vmp, bypass_v_drop, has_bypass=None):
    cell_currents = np.asarray(cell_currents, dtype=np.float64)
    cell_vmp = np.asarray(cell_vmp, dtype=np.float64)
    num_cells = cell_currents.size
    if num_cells == 0:
        return 0.0, np.zeros(0, dtype=bool)
    has_bypass = get_bypass_flags(has_bypass, num_cells)

    limiting = cell_currents[~has_bypass]
    if limiting.size == 0: # every cell has a bypass diode, take the weakest lit cell
        limiting = cell_currents[cell_currents > 0]
    if limiting.size == 0 or np.min(limiting) <= 0:
        return 0.0, np.ones(num_cells, dtype=bool)
    min_current = float(np.min(limiting))

    total_voltage = 0.0
    bypassed = np.zeros(num_cells, dtype=bool)
    for i in range(num_cells):
        if cell_currents[i] < min_current:
            if has_bypass[i]:
                bypassed[i] = True
                total_voltage -= bypass_v_drop
            else:
                total_voltage += cell_vmp[i]*(cell_currents[i]/min_current)
        else:
            total_voltage += cell_vmp[i]
    total_voltage = max(total_voltage, 0.0)
    return min_current*total_voltage, bypassed
