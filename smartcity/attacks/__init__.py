"""
Smart City Attack Families Package

Each attack family is a pure function ``family(sim_duration, topology)``
returning the traffic tasks that make up that attack. ``ATTACK_FAMILIES``
keeps them in the order the ``mixed`` scenario installs them.
"""

from .emerging import gpsspoof_attack, mitm6g_attack, mlpoison_attack, quantum_attack, sidechannel_attack
from .exfiltration import finance_attack, home_attack, university_attack
from .flooding import blockchain_attack, botnet_attack, ddos_attack, slicing_attack
from .infrastructure import grid_attack, medical_attack
from .intrusion import apt_attack, edge_attack, ransomware_attack, supply_attack
from .scanning import portscan_attack, recon_attack

ATTACK_FAMILIES = {
    'portscan': portscan_attack,
    'ddos': ddos_attack,
    'apt': apt_attack,
    'ransomware': ransomware_attack,
    'botnet': botnet_attack,
    'medical': medical_attack,
    'grid': grid_attack,
    'supply': supply_attack,
    'finance': finance_attack,
    'recon': recon_attack,
    'mitm6g': mitm6g_attack,
    'sidechannel': sidechannel_attack,
    'slicing': slicing_attack,
    'mlpoison': mlpoison_attack,
    'home': home_attack,
    'university': university_attack,
    'edge': edge_attack,
    'quantum': quantum_attack,
    'gpsspoof': gpsspoof_attack,
    'blockchain': blockchain_attack,
}

__all__ = ['ATTACK_FAMILIES'] + [family.__name__ for family in ATTACK_FAMILIES.values()]
