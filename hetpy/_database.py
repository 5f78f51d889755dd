# material parameters for layered heterostructures
#   eps : relative permittivity
#   Eg  : band gap in meV
#   me  : conduction band effective mass in units of the electron mass,
#         None for insulators that hold no free carriers
params = {
    'GaAs' : {
        'eps' : 12.9,
        'Eg' : 1420.0,
        'me' : 0.067,
        'note' : 'bulk, 4 K'
    },
    'Al03GaAs' : {
        'eps' : 12.2,
        'Eg' : 1800.0,
        'me' : 0.092,
        'note' : 'Al0.3Ga0.7As'
    },
    'AlAs' : {
        'eps' : 10.06,
        'Eg' : 2950.0,
        'me' : 0.15,
        'note' : 'indirect gap'
    },
    'InAs' : {
        'eps' : 15.15,
        'Eg' : 417.0,
        'me' : 0.023,
        'note' : ''
    },
    'In075GaAs' : {
        'eps' : 14.6,
        'Eg' : 640.0,
        'me' : 0.033,
        'note' : 'In0.75Ga0.25As'
    },
    'PMMA' : {
        'eps' : 2.6,
        'Eg' : 5600.0,
        'me' : None,
        'note' : 'resist layer'
    },
    'Air' : {
        'eps' : 1.0,
        'Eg' : 0.0,
        'me' : None,
        'note' : ''
    },
}
