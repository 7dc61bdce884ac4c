# Utils package for ReBooked backend
