"""
LoRa-over-satellite DSSS link simulation library.

Reusable modules live here; user-facing programs remain at repository root
and under apps/.

Modules:
- core.pn: two-LFSR Gold-like PN sequence
- core.modem: BPSK spreading, correlation despreading
- core.physics: theoretical BPSK/DSSS bit error rates
- channel.simulator: path loss, Doppler and AWGN satellite channel
- channel.atmosphere: simplified rain/cloud/gas/scintillation attenuation
- sim.sweep: BER vs SNR sweep driver
- utils.link_budget: FSPL and received-power budget
- utils.lora: LoRa time-on-air and receiver sensitivity
"""
