SAMPLE_STUDENTS = [
    {"student_id": "STU001", "student_name": "Aarav Sharma"},
    {"student_id": "STU002", "student_name": "Priya Nair"},
    {"student_id": "STU003", "student_name": "Rohan Verma"},
    {"student_id": "STU004", "student_name": "Ananya Iyer"},
    {"student_id": "STU005", "student_name": "Kabir Singh"},
    {"student_id": "STU006", "student_name": "Meera Pillai"},
    {"student_id": "STU007", "student_name": "Arjun Reddy"},
    {"student_id": "STU008", "student_name": "Sneha Kulkarni"},
    {"student_id": "STU009", "student_name": "Vikram Joshi"},
    {"student_id": "STU010", "student_name": "Isha Banerjee"},
    {"student_id": "STU011", "student_name": "Devansh Gupta"},
    {"student_id": "STU012", "student_name": "Kavya Menon"},
]

SAMPLE_INTERNSHIPS = [
    {"company": "Infosys", "position": "Data Analyst Intern"},
    {"company": "Tata Consultancy Services", "position": "Software Engineering Intern"},
    {"company": "Wipro", "position": "Cloud Operations Intern"},
    {"company": "ISRO", "position": "Research Intern"},
    {"company": "Zoho", "position": "Product Intern"},
    {"company": "Flipkart", "position": "Machine Learning Intern"},
]
