import numpy as np
from dataclasses import dataclass, replace

DEG2RAD = np.pi/180.0
RAD2DEG = 180.0/np.pi
BELOW_HORIZON = np.array([0.0, -1.0, 0.0])

@dataclass
class SimSettings:
    latitude: float = 37.4      # degrees
    longitude: float = -87.2    # degrees, standard time zone inferred from it
    year: int = 2024
    month: int = 6
    day: int = 21
    hour: float = 12.0          # local clock time
    irradiance: float = 1000.0  # W/m2

    def at_hour(self, hour):
        return replace(self, hour=hour)

def get_day_of_year(month, day):
    # 30-day months are close enough here
    return int(np.clip((month - 1)*30 + day, 1, 365))

def calc_sun_direction(settings):
    """
    Simplified NOAA solar position.

    Returns (direction, altitude, azimuth). direction is a unit vector in a y-up frame
    with -z to the north, or straight down when the sun is below the horizon.
    Angles are in degrees, azimuth clockwise from north.
    """
    lat = np.clip(settings.latitude*DEG2RAD, -89.0*DEG2RAD, 89.0*DEG2RAD)
    gamma = 2.0*np.pi/365.0*(get_day_of_year(settings.month, settings.day) - 1)

    eqtime = 229.18*(0.000075 + 0.001868*np.cos(gamma) - 0.032077*np.sin(gamma)
                     - 0.014615*np.cos(2*gamma) - 0.040849*np.sin(2*gamma)) # minutes
    decl = (0.006918 - 0.399912*np.cos(gamma) + 0.070257*np.sin(gamma) - 0.006758*np.cos(2*gamma)
            + 0.000907*np.sin(2*gamma) - 0.002697*np.cos(3*gamma) + 0.00148*np.sin(3*gamma))

    timezone_offset = np.round(settings.longitude/15.0)
    solar_time = settings.hour*60.0 + 4.0*(settings.longitude - timezone_offset*15.0) + eqtime
    hour_angle = solar_time/4.0 - 180.0 # 0 at solar noon

    cos_zen = np.clip(np.sin(lat)*np.sin(decl) + np.cos(lat)*np.cos(decl)*np.cos(hour_angle*DEG2RAD), -1.0, 1.0)
    zenith = np.arccos(cos_zen)
    altitude = float(90.0 - zenith*RAD2DEG)

    sin_zen = np.sin(zenith)
    if abs(sin_zen) > 0.001:
        cos_az = np.clip((np.sin(decl) - np.sin(lat)*cos_zen)/(np.cos(lat)*sin_zen), -1.0, 1.0)
        azimuth = float(np.arccos(cos_az)*RAD2DEG)
        if hour_angle > 0:
            azimuth = 360.0 - azimuth
    else:
        azimuth = 180.0

    if altitude <= 0:
        return BELOW_HORIZON.copy(), altitude, azimuth

    alt_rad = altitude*DEG2RAD
    az_rad = azimuth*DEG2RAD
    direction = np.array([np.cos(alt_rad)*np.sin(az_rad), np.sin(alt_rad), -np.cos(alt_rad)*np.cos(az_rad)])
    return direction/np.linalg.norm(direction), altitude, azimuth

def atmospheric_irradiance(irradiance, altitude):
    if altitude <= 0:
        return 0.0
    air_mass = 1.0/max(np.sin(altitude*DEG2RAD), 0.01)
    return float(irradiance*0.7**(air_mass**0.678))

def rotate_sun_to_heading(sun_direction, heading):
    # sun as seen from a vehicle turned by heading degrees about the vertical axis
    angle = -heading*DEG2RAD
    x, y, z = sun_direction
    return np.array([x*np.cos(angle) - z*np.sin(angle), y, x*np.sin(angle) + z*np.cos(angle)])

def calc_irradiance_ratio(normal, sun_direction, irradiance=1000.0, stc_irradiance=1000.0):
    facing = float(np.dot(normal, sun_direction))
    if facing <= 0:
        return 0.0
    return irradiance/stc_irradiance*facing
