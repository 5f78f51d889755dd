# physical constants in the working units of the library
# energies in meV, lengths in nm, charges in zC (1e-21 C)

# elementary charge
q_e = 160.2176634 # zC

# vacuum permittivity
epsilon_0 = 1.4185972 # zC^2 / (meV nm)

# conversion of an applied voltage into the potential units used by the solver
# 1 V = 1 J/C = 6.241509 meV/zC, so that q_e * V is the energy in meV
energy_V_to_meVpzC = 6.241509074 # meV/zC per V

# density conversion, cm^-3 to nm^-3
cm3_to_nm3 = 1e-21

# kinetic energy scale of a free electron
hbar2_over_2m0 = 38.09982 # meV nm^2
