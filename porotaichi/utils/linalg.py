import numpy


def no_operation(*args, **kwargs):
    pass

def cylindrical_axes(position, origin, axis):
    '''
    Local (radial, tangential, axial) frame at a point of a cylinder with the given origin and axis direction
    '''
    axis = numpy.asarray(axis, dtype=float)
    axis = axis / numpy.linalg.norm(axis)
    radial = numpy.asarray(position, dtype=float) - numpy.asarray(origin, dtype=float)
    radial -= numpy.dot(radial, axis) * axis
    radial_norm = numpy.linalg.norm(radial)
    if radial_norm < 1e-12:
        return numpy.eye(3)
    radial /= radial_norm
    tangential = numpy.cross(axis, radial)
    return numpy.array([radial, tangential, axis])
