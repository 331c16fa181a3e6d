import numpy as np
import time
from tqdm import tqdm
from PV_Shading_Model.stringing import *
from PV_Shading_Model.solar_position import *

day_sim_settings = load_parameter_set("day_sim_settings",
                                      filename=PARAM_DIR / "day_sim_settings.json",
                                      defaults={"TIME_SAMPLES": 48,
                                                "HEADING_SAMPLES": 36,
                                                "START_HOUR": 6.0,
                                                "DURATION_HOURS": 12.0,
                                                "STC_IRRADIANCE": 1000.0,
                                                "SHADED_ENERGY_FRACTION": 0.3})

@dataclass
class DaySimResult:
    total_energy_wh: float = 0.0
    average_power_w: float = 0.0
    peak_power_w: float = 0.0
    average_shaded_pct: float = 0.0
    energy_by_hour: np.ndarray = field(default_factory=lambda: np.zeros(24))
    cell_energy_wh: np.ndarray = field(default_factory=lambda: np.zeros(0))
    string_energy_wh: np.ndarray = field(default_factory=lambda: np.zeros(0))
    cell_shaded: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=bool))
    cancelled: bool = False

    def __str__(self):
        if self.cancelled:
            return "Simulation cancelled"
        return (f"Day: {self.total_energy_wh:.1f} Wh, avg {self.average_power_w:.1f} W, "
                f"peak {self.peak_power_w:.1f} W, {self.average_shaded_pct:.1f}% shaded")

class EnergyIntegrator:
    """
    Integrates array power over a day while the vehicle turns through every heading.

    cell_normals is an (N, 3) array of unit normals in the same y-up frame as the sun
    vector. is_occluded(cell_index, sun_direction) stands in for a ray test against
    the vehicle geometry and defaults to no occlusion.
    """
    def __init__(self, strings, cell_normals, preset, settings=None, is_occluded=None,
                 time_samples=None, heading_samples=None, start_hour=None, duration_hours=None,
                 num_points=None):
        self.strings = list(strings)
        self.cell_normals = np.atleast_2d(np.asarray(cell_normals, dtype=np.float64))
        if self.cell_normals.size == 0:
            self.cell_normals = np.zeros((0, 3))
        self.preset = preset
        self.settings = settings if settings is not None else SimSettings()
        self.is_occluded = is_occluded
        self.time_samples = max(int(time_samples if time_samples is not None else day_sim_settings["TIME_SAMPLES"]), 2)
        self.heading_samples = max(int(heading_samples if heading_samples is not None else day_sim_settings["HEADING_SAMPLES"]), 1)
        self.start_hour = float(start_hour if start_hour is not None else day_sim_settings["START_HOUR"])
        self.duration_hours = float(duration_hours if duration_hours is not None else day_sim_settings["DURATION_HOURS"])
        self.num_points = num_points
        self.timers = {}

    @property
    def num_cells(self):
        return self.cell_normals.shape[0]

    @property
    def dt_hours(self):
        return self.duration_hours/(self.time_samples - 1)

    def get_hours(self):
        return self.start_hour + self.duration_hours*np.arange(self.time_samples)/(self.time_samples - 1)

    def get_headings(self):
        return 360.0*np.arange(self.heading_samples)/self.heading_samples

    def calc_irradiance_ratios(self, sun_direction, irradiance):
        stc = day_sim_settings["STC_IRRADIANCE"]
        ratios = np.zeros(self.num_cells)
        shaded = np.zeros(self.num_cells, dtype=bool)
        for c in range(self.num_cells):
            facing = float(np.dot(self.cell_normals[c], sun_direction))
            if facing <= 0 or (self.is_occluded is not None and self.is_occluded(c, sun_direction)):
                shaded[c] = True
                continue
            ratios[c] = irradiance/stc*facing
        return ratios, shaded

    def simulate_instant(self, sun_direction, irradiance):
        ratios, shaded = self.calc_irradiance_ratios(sun_direction, irradiance)
        return simulate_strings(self.strings, ratios, self.preset, is_shaded=shaded, num_points=self.num_points)

    def simulate_static(self):
        # single snapshot at settings.hour, no atmospheric attenuation
        sun_direction, altitude, _ = calc_sun_direction(self.settings)
        if altitude <= 0:
            return simulate_strings(self.strings, np.zeros(self.num_cells), self.preset,
                                    is_shaded=np.ones(self.num_cells, dtype=bool), num_points=self.num_points)
        return self.simulate_instant(sun_direction, self.settings.irradiance)

    def get_string_energy(self, cell_energy):
        return np.array([np.sum(cell_energy[string.cell_indices]) for string in self.strings])

    def run(self, should_cancel=None, progress=True):
        start_time = time.time()
        result = DaySimResult(cell_energy_wh=np.zeros(self.num_cells),
                              string_energy_wh=np.zeros(len(self.strings)))
        total_samples = 0
        shaded_samples = 0
        dt_hours = self.dt_hours
        headings = self.get_headings()

        pbar = None
        if progress:
            pbar = tqdm(total=self.time_samples*self.heading_samples, desc="Simulating the day: ")
        for hour in self.get_hours():
            sun_direction, altitude, _ = calc_sun_direction(self.settings.at_hour(hour))
            if altitude <= 0:
                if pbar is not None:
                    pbar.update(self.heading_samples)
                continue
            irradiance = atmospheric_irradiance(self.settings.irradiance, altitude)

            power_sum = 0.0
            cell_power_sum = np.zeros(self.num_cells)
            for heading in headings:
                if should_cancel is not None and should_cancel():
                    result.cancelled = True
                    break
                static = self.simulate_instant(rotate_sun_to_heading(sun_direction, heading), irradiance)
                total_samples += self.num_cells
                shaded_samples += static.shaded_count
                result.peak_power_w = max(result.peak_power_w, static.total_power)
                power_sum += static.total_power
                cell_power_sum += static.cell_power
                if pbar is not None:
                    pbar.update(1)
            if result.cancelled:
                break

            # average over headings, then integrate over the time step
            step_energy = power_sum/self.heading_samples*dt_hours
            result.total_energy_wh += step_energy
            hour_bucket = int(hour)
            if 0 <= hour_bucket < 24:
                result.energy_by_hour[hour_bucket] += step_energy
            result.cell_energy_wh += cell_power_sum/self.heading_samples*dt_hours
        if pbar is not None:
            pbar.close()

        result.string_energy_wh = self.get_string_energy(result.cell_energy_wh)
        result.average_power_w = result.total_energy_wh/self.duration_hours if self.duration_hours > 0 else 0.0
        result.average_shaded_pct = 100.0*shaded_samples/total_samples if total_samples > 0 else 0.0

        # shaded over the day: under a fraction of half the clear-sky full-day energy
        theoretical_max = (self.preset.area*self.preset.efficiency*self.settings.irradiance
                           *self.duration_hours*0.5)
        result.cell_shaded = result.cell_energy_wh < theoretical_max*day_sim_settings["SHADED_ENERGY_FRACTION"]
        if result.cancelled:
            print("Simulation cancelled")
        self.timers["day"] = time.time() - start_time
        return result

def simulate_day(strings, cell_normals, preset, settings=None, is_occluded=None, should_cancel=None,
                 progress=True, **kwargs):
    integrator = EnergyIntegrator(strings, cell_normals, preset, settings=settings,
                                  is_occluded=is_occluded, **kwargs)
    return integrator.run(should_cancel=should_cancel, progress=progress)
