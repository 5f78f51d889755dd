import os

cdir = os.path.dirname(__file__)
path = cdir+'/outdata/'

############ LAYERS #############

# from the surface down
materials = ['PMMA', 'GaAs', 'Al03GaAs', 'GaAs']
thicknesses = [50.0, 10.0, 60.0, 280.0] # [nm]

############ GRID #############

nz = 401
nx = 41
width = 200.0 # [nm], lateral extent of the 2D run

############ BOUNDARIES #############

top_V = -0.5 # [V], gate on top of the resist
bottom_V = 0.0 # [V]
